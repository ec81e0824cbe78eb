"""Create profiles, contractors, leads, lead_assignments and feedback tables

Revision ID: 001_create_lead_engine_tables
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_create_lead_engine_tables'
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ('homeowner', 'contractor', 'admin')
ROOM_TYPES = ('kitchen', 'bathroom', 'living_room', 'bedroom', 'dining_room', 'home_office', 'other')
LEAD_STATUSES = ('new', 'assigned', 'contacted', 'quoted', 'converted', 'dead', 'unqualified')
ASSIGNMENT_METHODS = ('manual', 'automatic')


def upgrade():
    user_role_enum = postgresql.ENUM(*USER_ROLES, name='user_role', create_type=False)
    room_type_enum = postgresql.ENUM(*ROOM_TYPES, name='room_type', create_type=False)
    lead_status_enum = postgresql.ENUM(*LEAD_STATUSES, name='lead_status', create_type=False)
    assignment_method_enum = postgresql.ENUM(*ASSIGNMENT_METHODS, name='assignment_method', create_type=False)
    for enum_type in (user_role_enum, room_type_enum, lead_status_enum, assignment_method_enum):
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('role', user_role_enum, nullable=False),
        sa.Column('login_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_time_on_site_ms', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('ai_renderings_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_profiles_email'), 'profiles', ['email'], unique=True)

    op.create_table(
        'contractors',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('assigned_zip_codes', sa.JSON(), nullable=False),
        sa.Column('serves_all_zipcodes', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('subscription_tier', sa.String(), nullable=False, server_default='basic'),
        sa.Column('is_active_subscriber', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('leads_received_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('leads_converted_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('conversion_rate', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_contractors_email'), 'contractors', ['email'], unique=True)

    op.create_table(
        'leads',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('zip', sa.String(length=10), nullable=True),
        sa.Column('room_type', room_type_enum, nullable=False),
        sa.Column('style', sa.String(length=100), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('ai_url', sa.Text(), nullable=True),
        sa.Column('render_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('wants_quote', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('social_engaged', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_repeat_visitor', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', lead_status_enum, nullable=False),
        sa.Column('engagement_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('intent_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lead_quality_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('probability_to_close_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('overall_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('assigned_contractor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('last_contacted_at', sa.DateTime(), nullable=True),
        sa.Column('conversion_value', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('contractor_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['assigned_contractor_id'], ['contractors.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_leads_user_id'), 'leads', ['user_id'], unique=False)
    op.create_index(op.f('ix_leads_email'), 'leads', ['email'], unique=False)
    op.create_index(op.f('ix_leads_zip'), 'leads', ['zip'], unique=False)
    op.create_index(op.f('ix_leads_status'), 'leads', ['status'], unique=False)
    op.create_index(op.f('ix_leads_overall_score'), 'leads', ['overall_score'], unique=False)
    op.create_index(op.f('ix_leads_assigned_contractor_id'), 'leads', ['assigned_contractor_id'], unique=False)

    op.create_table(
        'lead_assignments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('lead_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('contractor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('assignment_method', assignment_method_enum, nullable=False),
        sa.Column('email_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('assigned_at', sa.DateTime(), nullable=False),
        sa.Column('contractor_responded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('response_time_hours', sa.Integer(), nullable=True),
        sa.Column('email_opened', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email_clicked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['contractor_id'], ['contractors.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_lead_assignments_id'), 'lead_assignments', ['id'], unique=False)
    op.create_index(op.f('ix_lead_assignments_lead_id'), 'lead_assignments', ['lead_id'], unique=False)
    op.create_index(op.f('ix_lead_assignments_contractor_id'), 'lead_assignments', ['contractor_id'], unique=False)
    op.create_index(op.f('ix_lead_assignments_assigned_at'), 'lead_assignments', ['assigned_at'], unique=False)

    op.create_table(
        'feedback',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('lead_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('source', sa.String(), nullable=False, server_default='web'),
        sa.Column('page_location', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_feedback_rating_range'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_feedback_id'), 'feedback', ['id'], unique=False)
    op.create_index(op.f('ix_feedback_lead_id'), 'feedback', ['lead_id'], unique=False)


def downgrade():
    op.drop_table('feedback')
    op.drop_table('lead_assignments')
    op.drop_table('leads')
    op.drop_table('contractors')
    op.drop_table('profiles')

    for name, values in (
        ('assignment_method', ASSIGNMENT_METHODS),
        ('lead_status', LEAD_STATUSES),
        ('room_type', ROOM_TYPES),
        ('user_role', USER_ROLES),
    ):
        postgresql.ENUM(*values, name=name).drop(op.get_bind(), checkfirst=True)
