"""SQLAlchemy table metadata for the stored claim facts.

The engine only reads these tables. Claim type and level are plain strings in the
store; rows are validated into the closed domain enums by ``schema`` on the way out.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    orm,
)

ID_LENGTH = 36
COUNTRY_CODE_LENGTH = 32

mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Catalog ---------------------------------------------------------------------

master_claim_brand_table = Table(
    "master_claim_brand",
    mapper_registry.metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("name", String, nullable=False),
)

product_table = Table(
    "product",
    mapper_registry.metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("name", String, nullable=False, default=""),
    Column("description", Text, nullable=True),
    Column(
        "master_brand_id",
        String(ID_LENGTH),
        ForeignKey("master_claim_brand.id"),
        nullable=True,
    ),
    Index("ix_product_master_brand_id", "master_brand_id"),
)

ingredient_table = Table(
    "ingredient",
    mapper_registry.metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("name", String, nullable=False),
)

product_ingredient_table = Table(
    "product_ingredient",
    mapper_registry.metadata,
    Column("product_id", String(ID_LENGTH), ForeignKey("product.id"), primary_key=True),
    Column("ingredient_id", String(ID_LENGTH), ForeignKey("ingredient.id"), primary_key=True),
)

# Claims ----------------------------------------------------------------------

claim_table = Table(
    "claim",
    mapper_registry.metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("claim_text", Text, nullable=False),
    Column("claim_type", String(32), nullable=False),
    Column("level", String(32), nullable=False),
    Column(
        "master_brand_id",
        String(ID_LENGTH),
        ForeignKey("master_claim_brand.id"),
        nullable=True,
    ),
    Column("description", Text, nullable=True),
    Index("ix_claim_level_master_brand_id", "level", "master_brand_id"),
)

claim_product_table = Table(
    "claim_product",
    mapper_registry.metadata,
    Column("claim_id", String(ID_LENGTH), ForeignKey("claim.id"), primary_key=True),
    Column("product_id", String(ID_LENGTH), ForeignKey("product.id"), primary_key=True),
    Index("ix_claim_product_product_id", "product_id"),
)

claim_ingredient_table = Table(
    "claim_ingredient",
    mapper_registry.metadata,
    Column("claim_id", String(ID_LENGTH), ForeignKey("claim.id"), primary_key=True),
    Column("ingredient_id", String(ID_LENGTH), ForeignKey("ingredient.id"), primary_key=True),
    Index("ix_claim_ingredient_ingredient_id", "ingredient_id"),
)

# A claim is global when it carries the "__GLOBAL__" pseudo country.
claim_country_table = Table(
    "claim_country",
    mapper_registry.metadata,
    Column("claim_id", String(ID_LENGTH), ForeignKey("claim.id"), primary_key=True),
    Column("country_code", String(COUNTRY_CODE_LENGTH), primary_key=True),
)

# Overrides -------------------------------------------------------------------

market_claim_override_table = Table(
    "market_claim_override",
    mapper_registry.metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("master_claim_id", String(ID_LENGTH), ForeignKey("claim.id"), nullable=False),
    Column("market_country_code", String(COUNTRY_CODE_LENGTH), nullable=False),
    Column("target_product_id", String(ID_LENGTH), ForeignKey("product.id"), nullable=False),
    Column("is_blocked", Boolean, nullable=False, default=True),
    Column(
        "replacement_claim_id",
        String(ID_LENGTH),
        ForeignKey("claim.id"),
        nullable=True,
    ),
    Index(
        "ix_market_claim_override_target_market",
        "target_product_id",
        "market_country_code",
    ),
)
