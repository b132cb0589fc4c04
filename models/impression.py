# models/impression.py
from sqlalchemy import BigInteger, Column, DateTime, Integer, String, func
from sqlalchemy.sql.elements import quoted_name

from config.settings import settings
from models import Base


class Impression(Base):
    __tablename__ = settings.IMPRESSIONS_TABLE

    id = Column("Id", Integer, primary_key=True, autoincrement=True)
    # KEY is reserved in T-SQL and MySQL; always emit it quoted.
    key = Column(quoted_name("Key", quote=True), String(255))
    split = Column("Split", String(255))
    environment_id = Column("EnvironmentId", String(255))
    environment_name = Column("EnvironmentName", String(255))
    treatment = Column("Treatment", String(255))
    time = Column("Time", BigInteger)
    label = Column("Label", String(255))
    split_version_number = Column("SplitVersionNumber", BigInteger)
    sdk = Column("Sdk", String(255))
    sdk_version = Column("SdkVersion", String(255))
    created_at = Column("CreatedAt", DateTime, server_default=func.current_timestamp())

    def __repr__(self):
        return f"<Impression {self.id}: {self.split}/{self.key} {self.treatment}>"
