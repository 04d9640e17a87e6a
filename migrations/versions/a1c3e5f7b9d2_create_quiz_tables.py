"""create_quiz_tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-16 21:10:42.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """과목/블록/문제/시도/답안 테이블 생성"""
    op.create_table(
        'subjects',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_subjects_slug', 'subjects', ['slug'], unique=True)

    op.create_table(
        'quiz_blocks',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('difficulty', sa.String(length=10), nullable=False, server_default='MEDIUM'),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('total_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_score', sa.Float(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quiz_blocks_subject_id', 'quiz_blocks', ['subject_id'])

    op.create_table(
        'quiz_questions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=False),
        sa.Column('block_id', sa.String(length=36), nullable=True),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_image', sa.String(length=1024), nullable=True),
        sa.Column('option_a', sa.Text(), nullable=False),
        sa.Column('option_b', sa.Text(), nullable=False),
        sa.Column('option_c', sa.Text(), nullable=False),
        sa.Column('option_d', sa.Text(), nullable=False),
        sa.Column('option_e', sa.Text(), nullable=True),
        sa.Column('correct_answer', sa.String(length=20), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('difficulty', sa.String(length=10), nullable=False, server_default='MEDIUM'),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('times_shown', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('times_correct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('times_wrong', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id']),
        sa.ForeignKeyConstraint(['block_id'], ['quiz_blocks.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quiz_questions_subject_id', 'quiz_questions', ['subject_id'])
    op.create_index('ix_quiz_questions_block_id', 'quiz_questions', ['block_id'])
    op.create_index('ix_quiz_questions_is_active', 'quiz_questions', ['is_active'])

    op.create_table(
        'quiz_attempts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('mode', sa.String(length=20), nullable=False),
        sa.Column('subject_id', sa.String(length=36), nullable=True),
        sa.Column('block_id', sa.String(length=36), nullable=True),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('wrong_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('skipped_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('time_spent', sa.Integer(), nullable=True),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id']),
        sa.ForeignKeyConstraint(['block_id'], ['quiz_blocks.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quiz_attempts_user_id', 'quiz_attempts', ['user_id'])
    op.create_index('ix_quiz_attempts_subject_id', 'quiz_attempts', ['subject_id'])
    op.create_index('ix_quiz_attempts_block_id', 'quiz_attempts', ['block_id'])
    op.create_index('ix_quiz_attempts_is_completed', 'quiz_attempts', ['is_completed'])
    # 보관 기간 정리 조회용
    op.create_index('ix_quiz_attempts_started_at', 'quiz_attempts', ['started_at'])

    op.create_table(
        'quiz_answers',
        sa.Column('attempt_id', sa.String(length=36), nullable=False),
        sa.Column('question_id', sa.String(length=36), nullable=False),
        sa.Column('question_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('user_answer', sa.String(length=20), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('time_spent', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('answered_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['attempt_id'], ['quiz_attempts.id']),
        sa.ForeignKeyConstraint(['question_id'], ['quiz_questions.id']),
        sa.PrimaryKeyConstraint('attempt_id', 'question_id'),
    )
    op.create_index('ix_quiz_answers_question_id', 'quiz_answers', ['question_id'])


def downgrade() -> None:
    """퀴즈 테이블 삭제"""
    op.drop_index('ix_quiz_answers_question_id', table_name='quiz_answers')
    op.drop_table('quiz_answers')
    for name in ('user_id', 'subject_id', 'block_id', 'is_completed', 'started_at'):
        op.drop_index(f'ix_quiz_attempts_{name}', table_name='quiz_attempts')
    op.drop_table('quiz_attempts')
    for name in ('subject_id', 'block_id', 'is_active'):
        op.drop_index(f'ix_quiz_questions_{name}', table_name='quiz_questions')
    op.drop_table('quiz_questions')
    op.drop_index('ix_quiz_blocks_subject_id', table_name='quiz_blocks')
    op.drop_table('quiz_blocks')
    op.drop_index('ix_subjects_slug', table_name='subjects')
    op.drop_table('subjects')
