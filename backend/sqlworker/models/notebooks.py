from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlworker.core.db import Base


class DataSource(Base):
    __tablename__ = "data_sources"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=True)        # "PostgreSQL", "MySQL", ...


class UserDatabase(Base):
    __tablename__ = "user_databases"

    id = Column(Text, primary_key=True)
    connection_string = Column(Text, nullable=True)   # JSON object, passed through as dbConfig
    data_source_id = Column(Text, ForeignKey("data_sources.id"), nullable=True, index=True)

    data_source = relationship(DataSource)


class Notebook(Base):
    __tablename__ = "notebooks"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=True)
    database_id = Column(Text, ForeignKey("user_databases.id"), nullable=True, index=True)

    database = relationship(UserDatabase)
