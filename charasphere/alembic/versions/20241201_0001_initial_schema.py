"""initial schema

Revision ID: 20241201_0001
Revises:
Create Date: 2024-12-01

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20241201_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create roster, collection, economy and grid tables."""
    op.create_table(
        "Series",
        sa.Column("seriesid", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("universe", sa.Text(), nullable=True),
        sa.Column("ability", sa.Text(), nullable=True),
    )

    op.create_table(
        "Roster",
        sa.Column("characterid", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("rarity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("seriesid", sa.Integer(), sa.ForeignKey("Series.seriesid"), nullable=True),
        sa.Column("dialogs", sa.Text(), nullable=False, server_default="[]"),  # JSON list
        sa.Column("image1url", sa.Text(), nullable=True),
        sa.Column("image2url", sa.Text(), nullable=True),
        sa.Column("image3url", sa.Text(), nullable=True),
        sa.Column("image4url", sa.Text(), nullable=True),
        sa.Column("image5url", sa.Text(), nullable=True),
        sa.Column("image6url", sa.Text(), nullable=True),
        sa.Column("claimed", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("idx_roster_claimed", "Roster", ["claimed"])
    op.create_index("idx_roster_name", "Roster", ["name"])

    op.create_table(
        "UserCollection",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("userid", sa.Text(), nullable=False),
        sa.Column(
            "characterid", sa.Integer(), sa.ForeignKey("Roster.characterid"), nullable=False
        ),
        sa.Column("favorite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("selectedImageId", sa.Integer(), nullable=True),
        sa.Column("customName", sa.Text(), nullable=True),
        sa.Column("createdAt", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("userid", "characterid", name="uq_usercollection_user_character"),
    )
    op.create_index("idx_usercollection_userid", "UserCollection", ["userid"])

    op.create_table(
        "playerstats",
        sa.Column("userid", sa.Text(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("gold", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("moves", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("cards", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cards_collected", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_move_refresh", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "gridprogress",
        sa.Column("user_id", sa.Text(), primary_key=True),
        sa.Column("tilemap", sa.Text(), nullable=False, server_default="[]"),  # JSON list
        sa.Column("goldCollected", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "GeneratedImage",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "characterId", sa.Integer(), sa.ForeignKey("Roster.characterid"), nullable=True
        ),
        sa.Column("collectionId", sa.Integer(), nullable=True),
        sa.Column("seed", sa.Integer(), nullable=True),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column("style", sa.Text(), nullable=True),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("createdAt", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_generatedimage_character", "GeneratedImage", ["characterId"])


def downgrade() -> None:
    """Drop all CharaSphere tables."""
    op.drop_index("idx_generatedimage_character", table_name="GeneratedImage")
    op.drop_table("GeneratedImage")
    op.drop_table("gridprogress")
    op.drop_table("playerstats")
    op.drop_index("idx_usercollection_userid", table_name="UserCollection")
    op.drop_table("UserCollection")
    op.drop_index("idx_roster_name", table_name="Roster")
    op.drop_index("idx_roster_claimed", table_name="Roster")
    op.drop_table("Roster")
    op.drop_table("Series")
