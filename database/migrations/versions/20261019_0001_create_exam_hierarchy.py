"""create exam hierarchy

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


semester_season = sa.Enum("SPRING", "SUMMER", "FALL", name="semester_season")


def upgrade() -> None:
    op.create_table(
        "semesters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("season", semester_season, nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("season", "year", name="uq_semesters_season_year"),
    )
    op.create_index("ix_semesters_year", "semesters", ["year"], unique=False)

    op.create_table(
        "exam_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("block", sa.Integer(), nullable=False),
        sa.Column("des", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("type", "block", "des", name="uq_exam_types_type_block_des"),
    )

    op.create_table(
        "exam_phases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("semester_id", sa.Integer(), nullable=False),
        sa.Column("exam_type_id", sa.Integer(), nullable=False),
        sa.Column("start_day", sa.Date(), nullable=False),
        sa.Column("end_day", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_exam_phases_semester_id", "exam_phases", ["semester_id"], unique=False)

    op.create_table(
        "exam_slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("exam_phase_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
    )
    op.create_index("ix_exam_slots_exam_phase_id", "exam_slots", ["exam_phase_id"], unique=False)
    op.create_index("ix_exam_slots_day", "exam_slots", ["day"], unique=False)

    op.create_table(
        "sub_in_slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("exam_slot_id", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
    )
    op.create_index("ix_sub_in_slots_exam_slot_id", "sub_in_slots", ["exam_slot_id"], unique=False)

    op.create_table(
        "exam_rooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sub_in_slot_id", sa.Integer(), nullable=False),
        sa.Column("room_ref", sa.String(length=50), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("examiner_id", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_exam_rooms_sub_in_slot_id", "exam_rooms", ["sub_in_slot_id"], unique=False)
    op.create_index("ix_exam_rooms_examiner_id", "exam_rooms", ["examiner_id"], unique=False)

    op.create_table(
        "examiners",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("semester_id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type_examiner", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("booking_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("semester_id", "email", name="uq_examiners_semester_email"),
    )
    op.create_index("ix_examiners_semester_id", "examiners", ["semester_id"], unique=False)
    op.create_index("ix_examiners_email", "examiners", ["email"], unique=False)

    op.create_table(
        "examiner_log_times",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("examiner_id", sa.Integer(), nullable=False),
        sa.Column("semester_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.UniqueConstraint("examiner_id", "day", name="uq_examiner_log_times_examiner_day"),
    )
    op.create_index("ix_examiner_log_times_examiner_id", "examiner_log_times", ["examiner_id"], unique=False)
    op.create_index("ix_examiner_log_times_semester_id", "examiner_log_times", ["semester_id"], unique=False)
    op.create_index("ix_examiner_log_times_day", "examiner_log_times", ["day"], unique=False)

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor", sa.String(length=255), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_index("ix_examiner_log_times_day", table_name="examiner_log_times")
    op.drop_index("ix_examiner_log_times_semester_id", table_name="examiner_log_times")
    op.drop_index("ix_examiner_log_times_examiner_id", table_name="examiner_log_times")
    op.drop_table("examiner_log_times")
    op.drop_index("ix_examiners_email", table_name="examiners")
    op.drop_index("ix_examiners_semester_id", table_name="examiners")
    op.drop_table("examiners")
    op.drop_index("ix_exam_rooms_examiner_id", table_name="exam_rooms")
    op.drop_index("ix_exam_rooms_sub_in_slot_id", table_name="exam_rooms")
    op.drop_table("exam_rooms")
    op.drop_index("ix_sub_in_slots_exam_slot_id", table_name="sub_in_slots")
    op.drop_table("sub_in_slots")
    op.drop_index("ix_exam_slots_day", table_name="exam_slots")
    op.drop_index("ix_exam_slots_exam_phase_id", table_name="exam_slots")
    op.drop_table("exam_slots")
    op.drop_index("ix_exam_phases_semester_id", table_name="exam_phases")
    op.drop_table("exam_phases")
    op.drop_table("exam_types")
    op.drop_index("ix_semesters_year", table_name="semesters")
    op.drop_table("semesters")
    semester_season.drop(op.get_bind(), checkfirst=True)
