"""SQLAlchemy ORM models for prefix persistence.

One table holds every prefix of every namespace. The full record lives in a
JSON document column; on PostgreSQL it is JSONB with a GIN index so document
queries stay cheap.
"""

from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from prefixstore.storage.base_model import Base

PrefixDocument = JSON().with_variant(JSONB(), "postgresql")


class PrefixModel(Base):
    """ORM model for prefix records.

    Attributes:
        cidr: Canonical cidr text (primary key, with namespace)
        namespace: Namespace of the prefix (primary key, with cidr)
        prefix: Full record document: cidr, parent_cidr, namespace, version, payload
    """

    __tablename__ = "prefixes"

    cidr: Mapped[str] = mapped_column(String, primary_key=True)
    namespace: Mapped[str] = mapped_column(String(255), primary_key=True)
    prefix: Mapped[dict[str, Any]] = mapped_column(PrefixDocument, nullable=False)

    __table_args__ = (
        Index("prefix_idx", "prefix", postgresql_using="gin"),
        Index("idx_prefixes_namespace", "namespace"),
    )
