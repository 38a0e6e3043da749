from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# SQLite only auto-increments an INTEGER PRIMARY KEY
IdType = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(SQLModel):
    """Base class for all persisted domain entities"""
    pass
