"""create platform categories and sharded site catalog tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

# Frozen copy of the shard set at the time of this revision
SUFFIXES = ['_a', '_b', '_c', '_d', '_e', '_f', '_g', '_h', '_i', '_j']


def _audit_columns():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_by', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(timezone=True)),
    ]


def _create_products(table):
    op.create_table(
        table,
        sa.Column('product_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('site_id', sa.Integer(), nullable=False),
        sa.Column('platform_category_id', sa.Integer()),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('type', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('member_price', sa.Integer()),
        sa.Column('supply_status', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('inventory', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('release_at', sa.DateTime(timezone=True)),
        sa.Column('offshelf_at', sa.DateTime(timezone=True)),
        sa.Column('scheduled_release_time', sa.DateTime(timezone=True)),
        sa.Column('scheduled_offshelf_time', sa.DateTime(timezone=True)),
        sa.Column('auto_offshelf_soldout', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('only_member', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.Integer(), nullable=False, server_default='1'),
        *_audit_columns(),
        sa.CheckConstraint('inventory >= 0', name=f'ck_{table}_inventory'),
    )
    op.create_index(f'idx_{table}_site_status', table, ['site_id', 'status'])
    op.create_index(f'idx_{table}_platform_category', table, ['platform_category_id'])


def _create_main_specs(table):
    op.create_table(
        table,
        sa.Column('main_spec_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('img_url', sa.String(1024)),
        sa.Column('price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('member_price', sa.Integer()),
        sa.Column('supply_status', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('inventory', sa.Integer(), nullable=False, server_default='0'),
        *_audit_columns(),
        sa.CheckConstraint('inventory >= 0', name=f'ck_{table}_inventory'),
    )
    op.create_index(f'idx_{table}_product', table, ['product_id'])


def _create_sub_specs(table):
    op.create_table(
        table,
        sa.Column('sub_spec_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('main_spec_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('member_price', sa.Integer()),
        sa.Column('supply_status', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('inventory', sa.Integer(), nullable=False, server_default='0'),
        *_audit_columns(),
        sa.CheckConstraint('inventory >= 0', name=f'ck_{table}_inventory'),
    )
    op.create_index(f'idx_{table}_main_spec', table, ['main_spec_id'])


def _create_categories(table):
    op.create_table(
        table,
        sa.Column('category_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('parent_id', sa.Integer()),
        sa.Column('site_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        *_audit_columns(),
    )
    op.create_index(f'idx_{table}_site_parent', table, ['site_id', 'parent_id'])


def _create_category_links(table):
    op.create_table(
        table,
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        *_audit_columns(),
    )
    op.create_index(f'idx_{table}_product', table, ['product_id'])
    op.create_index(f'idx_{table}_category', table, ['category_id'])


def _create_images(table):
    op.create_table(
        table,
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('img_url', sa.String(1024), nullable=False),
        sa.Column('cover_pic', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
    )
    op.create_index(f'idx_{table}_product', table, ['product_id'])


def _create_videos(table):
    op.create_table(
        table,
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('video_url', sa.String(1024), nullable=False),
        *_audit_columns(),
    )
    op.create_index(f'idx_{table}_product', table, ['product_id'])


SHARDED_TABLES = [
    ('site_products', _create_products),
    ('site_product_main_spec', _create_main_specs),
    ('site_product_sub_spec', _create_sub_specs),
    ('site_product_categories', _create_categories),
    ('site_product_category', _create_category_links),
    ('site_product_images', _create_images),
    ('site_product_videos', _create_videos),
]


def upgrade() -> None:
    # Platform-wide category tree, shared by every site
    op.create_table(
        'platform_product_categories',
        sa.Column('category_id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('parent_id', sa.Integer()),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('retail', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('inquiry', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_sensitive', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sensitive_type', sa.Integer()),
        *_audit_columns(),
    )
    op.create_index('idx_platform_product_categories_parent', 'platform_product_categories', ['parent_id'])

    # Ten parallel tables per family, one per shard suffix
    for base, create in SHARDED_TABLES:
        for suffix in SUFFIXES:
            create(f'{base}{suffix}')


def downgrade() -> None:
    for base, _ in reversed(SHARDED_TABLES):
        for suffix in SUFFIXES:
            op.drop_table(f'{base}{suffix}')
    op.drop_table('platform_product_categories')
