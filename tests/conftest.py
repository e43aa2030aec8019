import sys
from pathlib import Path

import fakeredis
import pytest
import sqlalchemy as sa
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parent.parent
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

SCHEMA = (
    """
    create table items (
        item_id text primary key,
        name text not null,
        img text not null default '',
        price text not null default '0 gp',
        price_per integer not null default 1,
        level integer not null default 0
    )
    """,
    """
    create table purses (
        owner_scope text primary key,
        copper integer not null default 0 check (copper >= 0)
    )
    """,
    """
    create table reagents (
        reagent_id text primary key,
        owner_scope text not null,
        name text not null,
        level integer not null,
        quantity integer not null default 0,
        leftovers text not null default '0 gp'
    )
    """,
    """
    create table owned_items (
        owner_scope text not null,
        item_id text not null,
        quantity integer not null,
        primary key (owner_scope, item_id)
    )
    """,
    """
    create table owner_users (
        owner_scope text not null,
        user_id text not null,
        primary key (owner_scope, user_id)
    )
    """,
)


@pytest.fixture()
def sql_engine():
    """Provide an in-memory SQLite engine with the crafting schema."""

    engine = sa.create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        for statement in SCHEMA:
            conn.execute(sa.text(statement))
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def seeded_engine(sql_engine):
    """Catalog items plus a 30 gp purse and one 50 gp reagent for alice."""

    with sql_engine.begin() as conn:
        conn.execute(
            sa.text(
                """
                insert into items (item_id, name, img, price, price_per, level) values
                ('sword', 'Longsword', 'icons/sword.webp', '100 gp', 1, 3),
                ('arrows', 'Arrows', 'icons/arrows.webp', '1 sp', 10, 0),
                ('potion', 'Healing Potion', 'icons/potion.webp', '4 gp', 1, 1)
                """
            )
        )
        conn.execute(sa.text("insert into purses (owner_scope, copper) values ('alice', 3000)"))
        conn.execute(
            sa.text(
                """
                insert into reagents (reagent_id, owner_scope, name, level, quantity, leftovers) values
                ('herbs', 'alice', 'Herbs', 6, 1, '0 gp')
                """
            )
        )
        conn.execute(sa.text("insert into owner_users (owner_scope, user_id) values ('alice', 'u-alice')"))
    return sql_engine
