"""enforce same college for enrollments

Revision ID: 7c21d0e4b9a3
Revises: 3f9b1a6c2d10
Create Date: 2026-10-13 16:40:51.027315

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '7c21d0e4b9a3'
down_revision: Union[str, Sequence[str], None] = '3f9b1a6c2d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


POSTGRES_FUNCTION = """
CREATE OR REPLACE FUNCTION enrollments_same_college() RETURNS trigger AS $$
BEGIN
    IF (SELECT college_id FROM students WHERE id = NEW.student_id)
       IS DISTINCT FROM (SELECT college_id FROM courses WHERE id = NEW.course_id) THEN
        RAISE EXCEPTION 'Student and course must belong to the same college';
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    if bind.dialect.name == "sqlite":
        from college_enroll.models.enrollment import SAME_COLLEGE_TRIGGER_SQLITE

        op.execute(SAME_COLLEGE_TRIGGER_SQLITE)
    elif bind.dialect.name == "postgresql":
        op.execute(POSTGRES_FUNCTION)
        op.execute(
            "CREATE TRIGGER trg_enrollments_same_college BEFORE INSERT ON enrollments "
            "FOR EACH ROW EXECUTE FUNCTION enrollments_same_college()"
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    if bind.dialect.name == "sqlite":
        op.execute("DROP TRIGGER IF EXISTS trg_enrollments_same_college")
    elif bind.dialect.name == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS trg_enrollments_same_college ON enrollments")
        op.execute("DROP FUNCTION IF EXISTS enrollments_same_college()")
