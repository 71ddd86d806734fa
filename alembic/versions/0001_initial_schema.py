"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns store the member names
user_role = sa.Enum('ADMIN', 'TEACHER', 'STUDENT', 'PARENT', name='user_role')
enrollment_status = sa.Enum('ACTIVE', 'COMPLETED', 'DROPPED', name='enrollment_status')
attendance_status = sa.Enum('PRESENT', 'ABSENT', 'LATE', 'EXCUSED', name='attendance_status')
session_status = sa.Enum('SCHEDULED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', name='session_status')
content_type = sa.Enum('TEXT', 'VIDEO', 'PDF', 'LINK', name='content_type')
notification_type = sa.Enum('INFO', 'WARNING', 'SUCCESS', 'ERROR', name='notification_type')


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('phone', sa.String(length=20)),
        sa.Column('date_of_birth', sa.Date()),
        sa.Column('profile_image_url', sa.String(length=500)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(timezone=True)),
        *timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'parent_student_links',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('parent_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('relationship_type', sa.String(length=50), nullable=False, server_default='parent'),
        *timestamps(),
        sa.UniqueConstraint('parent_id', 'student_id', name='uq_parent_student_link'),
    )
    op.create_index('ix_parent_student_links_parent_id', 'parent_student_links', ['parent_id'])
    op.create_index('ix_parent_student_links_student_id', 'parent_student_links', ['student_id'])

    op.create_table(
        'courses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('duration_weeks', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('max_students', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('difficulty_level', sa.String(length=50)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('instructor_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        *timestamps(),
    )
    op.create_index('ix_courses_instructor_id', 'courses', ['instructor_id'])
    op.create_index('ix_courses_is_active', 'courses', ['is_active'])

    op.create_table(
        'enrollments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('enrollment_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('status', enrollment_status, nullable=False),
        sa.Column('progress_percentage', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('final_grade', sa.Numeric(5, 2)),
        *timestamps(),
        sa.UniqueConstraint('student_id', 'course_id', name='uq_enrollment_student_course'),
    )
    op.create_index('ix_enrollments_student_id', 'enrollments', ['student_id'])
    op.create_index('ix_enrollments_course_id', 'enrollments', ['course_id'])
    op.create_index('ix_enrollments_status', 'enrollments', ['status'])

    op.create_table(
        'assignments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('due_date', sa.DateTime(timezone=True)),
        sa.Column('max_points', sa.Numeric(5, 2), nullable=False, server_default='100'),
        sa.Column('assignment_type', sa.String(length=50), nullable=False, server_default='homework'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )
    op.create_index('ix_assignments_course_id', 'assignments', ['course_id'])
    op.create_index('ix_assignments_created_by_id', 'assignments', ['created_by_id'])
    op.create_index('ix_assignments_due_date', 'assignments', ['due_date'])

    op.create_table(
        'submissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('assignment_id', sa.Uuid(), sa.ForeignKey('assignments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('submission_text', sa.Text()),
        sa.Column('file_url', sa.String(length=500)),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('grade', sa.Numeric(5, 2)),
        sa.Column('feedback', sa.Text()),
        sa.Column('graded_at', sa.DateTime(timezone=True)),
        sa.Column('graded_by_id', sa.Uuid(), sa.ForeignKey('users.id')),
        *timestamps(),
        sa.UniqueConstraint('assignment_id', 'student_id', name='uq_submission_assignment_student'),
    )
    op.create_index('ix_submissions_assignment_id', 'submissions', ['assignment_id'])
    op.create_index('ix_submissions_student_id', 'submissions', ['student_id'])

    op.create_table(
        'class_sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('scheduled_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scheduled_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('meeting_id', sa.String(length=100)),
        sa.Column('meeting_url', sa.String(length=500)),
        sa.Column('meeting_password', sa.String(length=100)),
        sa.Column('status', session_status, nullable=False),
        *timestamps(),
    )
    op.create_index('ix_class_sessions_course_id', 'class_sessions', ['course_id'])
    op.create_index('ix_class_sessions_scheduled_start', 'class_sessions', ['scheduled_start'])
    op.create_index('ix_class_sessions_status', 'class_sessions', ['status'])

    op.create_table(
        'attendance',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('session_id', sa.Uuid(), sa.ForeignKey('class_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', attendance_status, nullable=False),
        sa.Column('join_time', sa.DateTime(timezone=True)),
        sa.Column('leave_time', sa.DateTime(timezone=True)),
        sa.Column('notes', sa.Text()),
        *timestamps(),
        sa.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )
    op.create_index('ix_attendance_session_id', 'attendance', ['session_id'])
    op.create_index('ix_attendance_student_id', 'attendance', ['student_id'])

    op.create_table(
        'content',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('content_type', content_type, nullable=False),
        sa.Column('file_url', sa.String(length=500)),
        sa.Column('duration_minutes', sa.Integer()),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )
    op.create_index('ix_content_course_id', 'content', ['course_id'])
    op.create_index('ix_content_order_index', 'content', ['order_index'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('notification_type', notification_type, nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('action_url', sa.String(length=500)),
        *timestamps(),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])

    for table in (
        'parent_student_links', 'courses', 'enrollments', 'assignments', 'submissions',
        'class_sessions', 'attendance', 'content', 'notifications'
    ):
        op.create_index(f'ix_{table}_created_at', table, ['created_at'])


def downgrade() -> None:
    for table in (
        'notifications', 'content', 'attendance', 'class_sessions', 'submissions',
        'assignments', 'enrollments', 'courses', 'parent_student_links', 'users'
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (notification_type, content_type, session_status, attendance_status, enrollment_status, user_role):
        enum.drop(bind, checkfirst=True)
