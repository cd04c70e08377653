# Import all models here for Alembic to discover them
from src.db.base import Base
import src.models  # noqa: F401
