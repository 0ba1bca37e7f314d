"""Initial baseline migration for iCollect."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _in(values: tuple[str, ...]) -> str:
    return ",".join(f"'{value}'" for value in values)


LANGUAGES = ("EN", "JP", "CN", "KOR")
SET_TYPES = (
    "BOOSTER", "STRUCTURE_DECK", "STARTER_DECK", "SPECIAL_EDITION",
    "TIN", "PROMO", "DUELIST_PACK", "LEGENDARY_COLLECTION",
)
CARD_TYPES = ("MONSTER", "SPELL", "TRAP")
FRAME_COLORS = (
    "NORMAL", "EFFECT", "RITUAL", "FUSION", "SYNCHRO", "XYZ",
    "PENDULUM", "LINK", "TOKEN", "SPELL", "TRAP",
)
BAN_STATUSES = ("UNLIMITED", "SEMI_LIMITED", "LIMITED", "FORBIDDEN")
CONDITIONS = (
    "MINT", "NEAR_MINT", "LIGHTLY_PLAYED", "MODERATELY_PLAYED", "HEAVILY_PLAYED", "DAMAGED",
)
DECK_ZONES = ("MAIN", "EXTRA", "SIDE")


def upgrade() -> None:
    # Users ----------------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="USER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("role in ('ADMIN','USER')", name="ck_users_user_role"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("action", sa.String(length=120), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"], unique=False)
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"], unique=False)

    # Catalog ---------------------------------------------------------------
    op.create_table(
        "packs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("set_code", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("title_jp", sa.String(length=255), nullable=True),
        sa.Column("title_cn", sa.String(length=255), nullable=True),
        sa.Column("title_kor", sa.String(length=255), nullable=True),
        sa.Column("language", sa.String(length=8), nullable=False, server_default="EN"),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("set_type", sa.String(length=32), nullable=False, server_default="BOOSTER"),
        sa.Column("total_cards", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cover_image", sa.String(length=512), nullable=True),
        sa.Column("cover_image_small", sa.String(length=512), nullable=True),
        sa.Column("cover_blurhash", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(f"language in ({_in(LANGUAGES)})", name="ck_packs_pack_language"),
        sa.CheckConstraint(f"set_type in ({_in(SET_TYPES)})", name="ck_packs_pack_set_type"),
    )
    op.create_index("ix_packs_set_code", "packs", ["set_code"], unique=True)
    op.create_index("ix_packs_release_date", "packs", ["release_date"], unique=False)
    op.create_index("ix_packs_created_at", "packs", ["created_at"], unique=False)

    op.create_table(
        "cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("card_number", sa.String(length=32), nullable=False),
        sa.Column("set_code", sa.String(length=32), nullable=False),
        sa.Column("set_position", sa.String(length=16), nullable=False),
        sa.Column("konami_id", sa.String(length=32), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("name_jp", sa.String(length=255), nullable=True),
        sa.Column("name_cn", sa.String(length=255), nullable=True),
        sa.Column("name_kor", sa.String(length=255), nullable=True),
        sa.Column("language", sa.String(length=8), nullable=False, server_default="EN"),
        sa.Column("card_type", sa.String(length=16), nullable=False),
        sa.Column("frame_color", sa.String(length=16), nullable=False),
        sa.Column("attribute", sa.String(length=16), nullable=True),
        sa.Column("monster_type", sa.String(length=64), nullable=True),
        sa.Column("monster_abilities", sa.JSON(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=True),
        sa.Column("rank", sa.Integer(), nullable=True),
        sa.Column("link_rating", sa.Integer(), nullable=True),
        sa.Column("link_arrows", sa.JSON(), nullable=False),
        sa.Column("pendulum_scale", sa.Integer(), nullable=True),
        sa.Column("atk", sa.String(length=8), nullable=True),
        sa.Column("def", sa.String(length=8), nullable=True),
        sa.Column("spell_type", sa.String(length=16), nullable=True),
        sa.Column("trap_type", sa.String(length=16), nullable=True),
        sa.Column("card_text", sa.Text(), nullable=True),
        sa.Column("pendulum_effect", sa.Text(), nullable=True),
        sa.Column("rarity", sa.String(length=32), nullable=False, server_default="COMMON"),
        sa.Column("image_url", sa.String(length=512), nullable=True),
        sa.Column("image_url_small", sa.String(length=512), nullable=True),
        sa.Column("image_url_high", sa.String(length=512), nullable=True),
        sa.Column("image_blurhash", sa.String(length=128), nullable=True),
        sa.Column("tcg_legal", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("ocg_legal", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("ban_status", sa.String(length=16), nullable=False, server_default="UNLIMITED"),
        sa.Column("prices", sa.JSON(), nullable=True),
        sa.Column("prices_updated", sa.DateTime(), nullable=True),
        sa.Column("pack_id", sa.Integer(), sa.ForeignKey("packs.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(f"card_type in ({_in(CARD_TYPES)})", name="ck_cards_card_card_type"),
        sa.CheckConstraint(f"frame_color in ({_in(FRAME_COLORS)})", name="ck_cards_card_frame_color"),
        sa.CheckConstraint(f"language in ({_in(LANGUAGES)})", name="ck_cards_card_language"),
        sa.CheckConstraint(f"ban_status in ({_in(BAN_STATUSES)})", name="ck_cards_card_ban_status"),
    )
    op.create_index("ix_cards_card_number", "cards", ["card_number"], unique=True)
    op.create_index("ix_cards_set_code", "cards", ["set_code"], unique=False)
    op.create_index("ix_cards_set_code_set_position", "cards", ["set_code", "set_position"], unique=False)
    op.create_index("ix_cards_name", "cards", ["name"], unique=False)
    op.create_index("ix_cards_language", "cards", ["language"], unique=False)
    op.create_index("ix_cards_card_type", "cards", ["card_type"], unique=False)
    op.create_index("ix_cards_frame_color", "cards", ["frame_color"], unique=False)
    op.create_index("ix_cards_attribute", "cards", ["attribute"], unique=False)
    op.create_index("ix_cards_rarity", "cards", ["rarity"], unique=False)
    op.create_index("ix_cards_ban_status", "cards", ["ban_status"], unique=False)
    op.create_index("ix_cards_pack_id", "cards", ["pack_id"], unique=False)
    op.create_index("ix_cards_created_at", "cards", ["created_at"], unique=False)

    # Collections -------------------------------------------------------------
    op.create_table(
        "collections",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "name", name="uq_collections_user_name"),
    )
    op.create_index("ix_collections_user_id", "collections", ["user_id"], unique=False)
    op.create_index("ix_collections_updated_at", "collections", ["updated_at"], unique=False)

    op.create_table(
        "collection_cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "collection_id", sa.Integer(), sa.ForeignKey("collections.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("card_id", sa.Integer(), sa.ForeignKey("cards.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("condition", sa.String(length=24), nullable=False, server_default="NEAR_MINT"),
        sa.Column("language", sa.String(length=8), nullable=False, server_default="EN"),
        sa.Column("is_first_edition", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("purchase_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("purchase_currency", sa.String(length=8), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("added_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "collection_id", "card_id", "condition", "language", "is_first_edition",
            name="uq_collection_cards_variant",
        ),
        sa.CheckConstraint(f"condition in ({_in(CONDITIONS)})", name="ck_collection_cards_collection_card_condition"),
        sa.CheckConstraint(f"language in ({_in(LANGUAGES)})", name="ck_collection_cards_collection_card_language"),
        sa.CheckConstraint("quantity > 0", name="ck_collection_cards_collection_card_quantity"),
    )
    op.create_index("ix_collection_cards_collection_id", "collection_cards", ["collection_id"], unique=False)
    op.create_index("ix_collection_cards_card_id", "collection_cards", ["card_id"], unique=False)
    op.create_index("ix_collection_cards_added_at", "collection_cards", ["added_at"], unique=False)

    # Decks -------------------------------------------------------------------
    op.create_table(
        "decks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("format", sa.String(length=64), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "name", name="uq_decks_user_name"),
    )
    op.create_index("ix_decks_user_id", "decks", ["user_id"], unique=False)
    op.create_index("ix_decks_updated_at", "decks", ["updated_at"], unique=False)

    op.create_table(
        "deck_cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("deck_id", sa.Integer(), sa.ForeignKey("decks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("card_id", sa.Integer(), sa.ForeignKey("cards.id"), nullable=False),
        sa.Column("zone", sa.String(length=8), nullable=False, server_default="MAIN"),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("added_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("deck_id", "card_id", "zone", name="uq_deck_cards_zone"),
        sa.CheckConstraint(f"zone in ({_in(DECK_ZONES)})", name="ck_deck_cards_deck_card_zone"),
        sa.CheckConstraint("quantity > 0", name="ck_deck_cards_deck_card_quantity"),
    )
    op.create_index("ix_deck_cards_deck_id", "deck_cards", ["deck_id"], unique=False)
    op.create_index("ix_deck_cards_card_id", "deck_cards", ["card_id"], unique=False)

    # Wishlist ----------------------------------------------------------------
    op.create_table(
        "wishlist_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("card_id", sa.Integer(), sa.ForeignKey("cards.id"), nullable=False),
        sa.Column("price_alert_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("price_alert_threshold", sa.Numeric(10, 2), nullable=True),
        sa.Column("price_alert_source", sa.String(length=32), nullable=True),
        sa.Column("added_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "card_id", name="uq_wishlist_items_user_card"),
    )
    op.create_index("ix_wishlist_items_user_id", "wishlist_items", ["user_id"], unique=False)
    op.create_index("ix_wishlist_items_card_id", "wishlist_items", ["card_id"], unique=False)
    op.create_index("ix_wishlist_items_added_at", "wishlist_items", ["added_at"], unique=False)


def downgrade() -> None:
    # Drop tables in reverse dependency order
    op.drop_table("wishlist_items")
    op.drop_table("deck_cards")
    op.drop_table("decks")
    op.drop_table("collection_cards")
    op.drop_table("collections")
    op.drop_table("cards")
    op.drop_table("packs")
    op.drop_table("audit_logs")
    op.drop_table("users")
