"""claims schema

Revision ID: 0001_claims_schema
Revises:
Create Date: 2026-10-17 09:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_claims_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ID = sa.String(36)
COUNTRY_CODE = sa.String(32)


def upgrade() -> None:
    op.create_table(
        "master_claim_brand",
        sa.Column("id", ID, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_master_claim_brand"),
    )
    op.create_table(
        "ingredient",
        sa.Column("id", ID, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_ingredient"),
    )
    op.create_table(
        "product",
        sa.Column("id", ID, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("master_brand_id", ID, nullable=True),
        sa.ForeignKeyConstraint(
            ["master_brand_id"],
            ["master_claim_brand.id"],
            name="fk_product_product_master_brand_id_master_claim_brand",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_product"),
    )
    op.create_index("ix_product_master_brand_id", "product", ["master_brand_id"])
    op.create_table(
        "product_ingredient",
        sa.Column("product_id", ID, nullable=False),
        sa.Column("ingredient_id", ID, nullable=False),
        sa.ForeignKeyConstraint(
            ["product_id"],
            ["product.id"],
            name="fk_product_ingredient_product_ingredient_product_id_product",
        ),
        sa.ForeignKeyConstraint(
            ["ingredient_id"],
            ["ingredient.id"],
            name="fk_product_ingredient_product_ingredient_ingredient_id_ingredient",
        ),
        sa.PrimaryKeyConstraint("product_id", "ingredient_id", name="pk_product_ingredient"),
    )
    op.create_table(
        "claim",
        sa.Column("id", ID, nullable=False),
        sa.Column("claim_text", sa.Text(), nullable=False),
        sa.Column("claim_type", sa.String(32), nullable=False),
        sa.Column("level", sa.String(32), nullable=False),
        sa.Column("master_brand_id", ID, nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["master_brand_id"],
            ["master_claim_brand.id"],
            name="fk_claim_claim_master_brand_id_master_claim_brand",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_claim"),
    )
    op.create_index("ix_claim_level_master_brand_id", "claim", ["level", "master_brand_id"])
    op.create_table(
        "claim_product",
        sa.Column("claim_id", ID, nullable=False),
        sa.Column("product_id", ID, nullable=False),
        sa.ForeignKeyConstraint(
            ["claim_id"], ["claim.id"], name="fk_claim_product_claim_product_claim_id_claim"
        ),
        sa.ForeignKeyConstraint(
            ["product_id"],
            ["product.id"],
            name="fk_claim_product_claim_product_product_id_product",
        ),
        sa.PrimaryKeyConstraint("claim_id", "product_id", name="pk_claim_product"),
    )
    op.create_index("ix_claim_product_product_id", "claim_product", ["product_id"])
    op.create_table(
        "claim_ingredient",
        sa.Column("claim_id", ID, nullable=False),
        sa.Column("ingredient_id", ID, nullable=False),
        sa.ForeignKeyConstraint(
            ["claim_id"],
            ["claim.id"],
            name="fk_claim_ingredient_claim_ingredient_claim_id_claim",
        ),
        sa.ForeignKeyConstraint(
            ["ingredient_id"],
            ["ingredient.id"],
            name="fk_claim_ingredient_claim_ingredient_ingredient_id_ingredient",
        ),
        sa.PrimaryKeyConstraint("claim_id", "ingredient_id", name="pk_claim_ingredient"),
    )
    op.create_index("ix_claim_ingredient_ingredient_id", "claim_ingredient", ["ingredient_id"])
    op.create_table(
        "claim_country",
        sa.Column("claim_id", ID, nullable=False),
        sa.Column("country_code", COUNTRY_CODE, nullable=False),
        sa.ForeignKeyConstraint(
            ["claim_id"], ["claim.id"], name="fk_claim_country_claim_country_claim_id_claim"
        ),
        sa.PrimaryKeyConstraint("claim_id", "country_code", name="pk_claim_country"),
    )
    op.create_table(
        "market_claim_override",
        sa.Column("id", ID, nullable=False),
        sa.Column("master_claim_id", ID, nullable=False),
        sa.Column("market_country_code", COUNTRY_CODE, nullable=False),
        sa.Column("target_product_id", ID, nullable=False),
        sa.Column("is_blocked", sa.Boolean(), nullable=False),
        sa.Column("replacement_claim_id", ID, nullable=True),
        sa.ForeignKeyConstraint(
            ["master_claim_id"],
            ["claim.id"],
            name="fk_market_claim_override_market_claim_override_master_claim_id_claim",
        ),
        sa.ForeignKeyConstraint(
            ["target_product_id"],
            ["product.id"],
            name="fk_market_claim_override_market_claim_override_target_product_id_product",
        ),
        sa.ForeignKeyConstraint(
            ["replacement_claim_id"],
            ["claim.id"],
            name="fk_market_claim_override_market_claim_override_replacement_claim_id_claim",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_market_claim_override"),
    )
    op.create_index(
        "ix_market_claim_override_target_market",
        "market_claim_override",
        ["target_product_id", "market_country_code"],
    )


def downgrade() -> None:
    op.drop_index("ix_market_claim_override_target_market", table_name="market_claim_override")
    op.drop_table("market_claim_override")
    op.drop_table("claim_country")
    op.drop_index("ix_claim_ingredient_ingredient_id", table_name="claim_ingredient")
    op.drop_table("claim_ingredient")
    op.drop_index("ix_claim_product_product_id", table_name="claim_product")
    op.drop_table("claim_product")
    op.drop_index("ix_claim_level_master_brand_id", table_name="claim")
    op.drop_table("claim")
    op.drop_table("product_ingredient")
    op.drop_index("ix_product_master_brand_id", table_name="product")
    op.drop_table("product")
    op.drop_table("ingredient")
    op.drop_table("master_claim_brand")
