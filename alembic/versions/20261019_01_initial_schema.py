from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None

item_type = sa.Enum("FILE", "FOLDER", name="item_type")
notification_type = sa.Enum("UPLOAD", "MODIFY", "DELETE", "SHARE", "ALERT", name="notification_type")


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.text('1')),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'file_items',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', item_type, nullable=False),
        sa.Column('parent_id', sa.String(length=36), nullable=True),
        sa.Column('storage_key', sa.String(), nullable=True),
        sa.Column('size', sa.BigInteger(), nullable=True),
        sa.Column('mime_type', sa.String(), nullable=True),
        sa.Column('folder_color', sa.String(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('owner_id', sa.String(length=36), nullable=False),
        sa.Column('owner_email', sa.String(), nullable=True),
        sa.Column('sort_order', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_file_items_parent_name', 'file_items', ['parent_id', 'name'])
    op.create_index('ix_file_items_owner_name', 'file_items', ['owner_id', 'name'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('file_item_id', sa.String(length=36), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('sort_key', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notifications_user_sort', 'notifications', ['user_id', 'sort_key'])

    op.create_table(
        'file_alerts',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('file_item_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('user_email', sa.String(), nullable=False),
        sa.Column('alert_on_upload', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('alert_on_modify', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('alert_on_delete', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('email_notification', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'file_item_id', name='uq_file_alerts_user_item'),
    )
    op.create_index('ix_file_alerts_file_item_id', 'file_alerts', ['file_item_id'])
    op.create_index('ix_file_alerts_user_id', 'file_alerts', ['user_id'])

    op.create_table(
        'quick_links',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('folder_id', sa.String(length=36), nullable=False),
        sa.Column('folder_color', sa.String(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_quick_links_user_order', 'quick_links', ['user_id', 'sort_order'])


def downgrade() -> None:
    op.drop_index('ix_quick_links_user_order', table_name='quick_links')
    op.drop_table('quick_links')
    op.drop_index('ix_file_alerts_user_id', table_name='file_alerts')
    op.drop_index('ix_file_alerts_file_item_id', table_name='file_alerts')
    op.drop_table('file_alerts')
    op.drop_index('ix_notifications_user_sort', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_file_items_owner_name', table_name='file_items')
    op.drop_index('ix_file_items_parent_name', table_name='file_items')
    op.drop_table('file_items')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    item_type.drop(op.get_bind(), checkfirst=True)
    notification_type.drop(op.get_bind(), checkfirst=True)
