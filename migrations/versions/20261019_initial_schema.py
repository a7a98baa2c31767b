"""
Initial TrueDope schema.

Users, owned shooting-log entities (locations, rifles, ammunition and lots,
range sessions with chrono/dope/group records, group measurements, images,
preferences) and the admin audit log.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = 'initial_schema_20261019'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if updated:
        cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return cols


def _owner():
    return sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_preferences',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('distance_unit', sa.String(10), nullable=False),
        sa.Column('adjustment_unit', sa.String(10), nullable=False),
        sa.Column('temperature_unit', sa.String(10), nullable=False),
        sa.Column('pressure_unit', sa.String(10), nullable=False),
        sa.Column('velocity_unit', sa.String(10), nullable=False),
        sa.Column('theme', sa.String(10), nullable=False),
        sa.Column('group_size_method', sa.String(10), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'saved_locations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('altitude', sa.Float(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_saved_locations_user_id', 'saved_locations', ['user_id'])

    op.create_table(
        'rifle_setups',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('manufacturer', sa.String(100), nullable=True),
        sa.Column('model', sa.String(100), nullable=True),
        sa.Column('caliber', sa.String(50), nullable=False),
        sa.Column('barrel_length', sa.Float(), nullable=True),
        sa.Column('twist_rate', sa.String(20), nullable=True),
        sa.Column('scope_make', sa.String(100), nullable=True),
        sa.Column('scope_model', sa.String(100), nullable=True),
        sa.Column('scope_height', sa.Float(), nullable=True),
        sa.Column('zero_distance', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('zero_elevation_clicks', sa.Integer(), nullable=True),
        sa.Column('zero_windage_clicks', sa.Integer(), nullable=True),
        sa.Column('muzzle_velocity', sa.Integer(), nullable=True),
        sa.Column('ballistic_coefficient', sa.Float(), nullable=True),
        sa.Column('drag_model', sa.String(10), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_rifle_setups_user_id', 'rifle_setups', ['user_id'])

    op.create_table(
        'ammunition',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('manufacturer', sa.String(100), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('caliber', sa.String(50), nullable=False),
        sa.Column('grain', sa.Float(), nullable=False),
        sa.Column('bullet_type', sa.String(50), nullable=True),
        sa.Column('cost_per_round', sa.Numeric(10, 4), nullable=True),
        sa.Column('ballistic_coefficient', sa.Float(), nullable=True),
        sa.Column('drag_model', sa.String(10), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_ammunition_user_id', 'ammunition', ['user_id'])

    op.create_table(
        'ammo_lots',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('ammunition_id', sa.Integer(), sa.ForeignKey('ammunition.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lot_number', sa.String(50), nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('initial_quantity', sa.Integer(), nullable=True),
        sa.Column('purchase_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('ammunition_id', 'lot_number', name='uq_ammo_lots_ammunition_lot_number'),
    )
    op.create_index('ix_ammo_lots_user_id', 'ammo_lots', ['user_id'])

    op.create_table(
        'range_sessions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('rifle_setup_id', sa.Integer(), sa.ForeignKey('rifle_setups.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('saved_location_id', sa.Integer(), sa.ForeignKey('saved_locations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('session_time', sa.Time(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('location_name', sa.String(255), nullable=True),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('humidity', sa.Float(), nullable=True),
        sa.Column('wind_speed', sa.Float(), nullable=True),
        sa.Column('wind_direction', sa.Float(), nullable=True),
        sa.Column('pressure', sa.Float(), nullable=True),
        sa.Column('density_altitude', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_range_sessions_user_id_session_date', 'range_sessions', ['user_id', 'session_date'])

    op.create_table(
        'chrono_sessions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('range_session_id', sa.Integer(), sa.ForeignKey('range_sessions.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('ammunition_id', sa.Integer(), sa.ForeignKey('ammunition.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('ammo_lot_id', sa.Integer(), sa.ForeignKey('ammo_lots.id', ondelete='SET NULL'), nullable=True),
        sa.Column('barrel_temperature', sa.Float(), nullable=True),
        sa.Column('number_of_rounds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_velocity', sa.Float(), nullable=True),
        sa.Column('high_velocity', sa.Float(), nullable=True),
        sa.Column('low_velocity', sa.Float(), nullable=True),
        sa.Column('standard_deviation', sa.Float(), nullable=True),
        sa.Column('extreme_spread', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'velocity_readings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('chrono_session_id', sa.Integer(), sa.ForeignKey('chrono_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('shot_number', sa.Integer(), nullable=False),
        sa.Column('velocity', sa.Integer(), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint('chrono_session_id', 'shot_number', name='uq_velocity_readings_chrono_shot'),
    )

    op.create_table(
        'dope_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('range_session_id', sa.Integer(), sa.ForeignKey('range_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ammunition_id', sa.Integer(), sa.ForeignKey('ammunition.id', ondelete='SET NULL'), nullable=True),
        sa.Column('ammo_lot_id', sa.Integer(), sa.ForeignKey('ammo_lots.id', ondelete='SET NULL'), nullable=True),
        sa.Column('distance', sa.Integer(), nullable=False),
        sa.Column('elevation_mils', sa.Float(), nullable=False),
        sa.Column('windage_mils', sa.Float(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint('range_session_id', 'distance', name='uq_dope_entries_session_distance'),
    )

    op.create_table(
        'group_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('range_session_id', sa.Integer(), sa.ForeignKey('range_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ammunition_id', sa.Integer(), sa.ForeignKey('ammunition.id', ondelete='SET NULL'), nullable=True),
        sa.Column('ammo_lot_id', sa.Integer(), sa.ForeignKey('ammo_lots.id', ondelete='SET NULL'), nullable=True),
        sa.Column('group_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('distance', sa.Integer(), nullable=False),
        sa.Column('number_of_shots', sa.Integer(), nullable=False),
        sa.Column('group_size_moa', sa.Float(), nullable=True),
        sa.Column('mean_radius_moa', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'images',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('original_file_name', sa.String(255), nullable=False),
        sa.Column('content_type', sa.String(100), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('thumbnail_file_name', sa.String(255), nullable=True),
        sa.Column('caption', sa.String(500), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_processed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('rifle_setup_id', sa.Integer(), sa.ForeignKey('rifle_setups.id', ondelete='CASCADE'), nullable=True),
        sa.Column('range_session_id', sa.Integer(), sa.ForeignKey('range_sessions.id', ondelete='CASCADE'), nullable=True),
        sa.Column('group_entry_id', sa.Integer(), sa.ForeignKey('group_entries.id', ondelete='CASCADE'), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(CASE WHEN rifle_setup_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN range_session_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN group_entry_id IS NULL THEN 0 ELSE 1 END) = 1",
            name='ck_images_single_parent',
        ),
    )
    op.create_index('ix_images_user_id', 'images', ['user_id'])
    op.create_index('ix_images_file_name', 'images', ['file_name'])

    op.create_table(
        'group_measurements',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('group_entry_id', sa.Integer(), sa.ForeignKey('group_entries.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('hole_positions', postgresql.JSONB(), nullable=False),
        sa.Column('bullet_diameter', sa.Float(), nullable=False),
        sa.Column('extreme_spread_ctc', sa.Float(), nullable=True),
        sa.Column('extreme_spread_ete', sa.Float(), nullable=True),
        sa.Column('mean_radius', sa.Float(), nullable=True),
        sa.Column('horizontal_spread_ctc', sa.Float(), nullable=True),
        sa.Column('horizontal_spread_ete', sa.Float(), nullable=True),
        sa.Column('vertical_spread_ctc', sa.Float(), nullable=True),
        sa.Column('vertical_spread_ete', sa.Float(), nullable=True),
        sa.Column('radial_std_dev', sa.Float(), nullable=True),
        sa.Column('horizontal_std_dev', sa.Float(), nullable=True),
        sa.Column('vertical_std_dev', sa.Float(), nullable=True),
        sa.Column('cep50', sa.Float(), nullable=True),
        sa.Column('poi_offset_x', sa.Float(), nullable=True),
        sa.Column('poi_offset_y', sa.Float(), nullable=True),
        sa.Column('calibration_method', sa.String(20), nullable=False, server_default='manual'),
        sa.Column('measurement_confidence', sa.Float(), nullable=True),
        sa.Column('original_image_id', sa.Integer(), sa.ForeignKey('images.id', ondelete='SET NULL'), nullable=True),
        sa.Column('annotated_image_id', sa.Integer(), sa.ForeignKey('images.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'admin_audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('admin_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('target_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('target_type', sa.Text(), nullable=True),
        sa.Column('target_id', sa.Text(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_admin_audit_logs_admin_user_id_created_at', 'admin_audit_logs', ['admin_user_id', 'created_at'])
    op.create_index('ix_admin_audit_logs_target_user_id_created_at', 'admin_audit_logs', ['target_user_id', 'created_at'])
    op.create_index('ix_admin_audit_logs_action_type', 'admin_audit_logs', ['action_type'])


def downgrade() -> None:
    op.drop_table('admin_audit_logs')
    op.drop_table('group_measurements')
    op.drop_table('images')
    op.drop_table('group_entries')
    op.drop_table('dope_entries')
    op.drop_table('velocity_readings')
    op.drop_table('chrono_sessions')
    op.drop_table('range_sessions')
    op.drop_table('ammo_lots')
    op.drop_table('ammunition')
    op.drop_table('rifle_setups')
    op.drop_table('saved_locations')
    op.drop_table('user_preferences')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
