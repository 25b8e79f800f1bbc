"""initial schema: users, quiz packages, questions, sessions, answers

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('admin', 'user', name='user_role')
answer_option = sa.Enum('A', 'B', 'C', 'D', 'E', name='answer_option')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'quiz_packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('time_limit_minutes', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quiz_packages_id', 'quiz_packages', ['id'])
    op.create_index('ix_quiz_packages_created_by', 'quiz_packages', ['created_by'])

    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('quiz_package_id', sa.Integer(), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('option_a', sa.Text(), nullable=False),
        sa.Column('option_b', sa.Text(), nullable=False),
        sa.Column('option_c', sa.Text(), nullable=False),
        sa.Column('option_d', sa.Text(), nullable=False),
        sa.Column('option_e', sa.Text(), nullable=False),
        sa.Column('correct_answer', answer_option, nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('order_number', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['quiz_package_id'], ['quiz_packages.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_questions_id', 'questions', ['id'])
    op.create_index('ix_questions_quiz_package_id', 'questions', ['quiz_package_id'])

    op.create_table(
        'quiz_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('quiz_package_id', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('time_remaining_seconds', sa.Integer(), nullable=False),
        sa.Column('total_score', sa.Integer(), nullable=True),
        sa.Column('total_correct', sa.Integer(), nullable=True),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), server_default='false', nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['quiz_package_id'], ['quiz_packages.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quiz_sessions_id', 'quiz_sessions', ['id'])
    op.create_index('ix_quiz_sessions_user_id', 'quiz_sessions', ['user_id'])
    op.create_index('ix_quiz_sessions_quiz_package_id', 'quiz_sessions', ['quiz_package_id'])

    op.create_table(
        'user_answers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('selected_answer', answer_option, nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('answered_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['quiz_sessions.id']),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_answers_id', 'user_answers', ['id'])
    op.create_index('ix_user_answers_session_id', 'user_answers', ['session_id'])


def downgrade() -> None:
    op.drop_table('user_answers')
    op.drop_table('quiz_sessions')
    op.drop_table('questions')
    op.drop_table('quiz_packages')
    op.drop_table('users')
    answer_option.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
