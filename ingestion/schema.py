"""Coach and import-checkpoint table schemas."""

from coachdb import DatabaseService

COACHES_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS coaches (
    id            {identity_column},
    first_name    TEXT        NOT NULL,
    last_name     TEXT        NOT NULL,
    email         TEXT        NOT NULL,
    phone         TEXT,
    school        TEXT        NOT NULL,
    sport         TEXT        NOT NULL,
    position      TEXT,
    division      TEXT,
    conference    TEXT,
    state         TEXT,
    region        TEXT
);
CREATE INDEX IF NOT EXISTS idx_coaches_email ON coaches(email);
CREATE INDEX IF NOT EXISTS idx_coaches_school ON coaches(school);
"""

CHECKPOINTS_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS import_checkpoints (
    source          TEXT        PRIMARY KEY,
    next_index      INTEGER     NOT NULL,
    total_imported  INTEGER     NOT NULL,
    fingerprint     VARCHAR(64) NOT NULL,
    updated_at      TIMESTAMP   DEFAULT CURRENT_TIMESTAMP
);
"""

COACHES_TABLE = "coaches"
COACH_COLUMNS = [
    "first_name",
    "last_name",
    "email",
    "phone",
    "school",
    "sport",
    "position",
    "division",
    "conference",
    "state",
    "region",
]

CHECKPOINTS_TABLE = "import_checkpoints"
CHECKPOINT_COLUMNS = ["source", "next_index", "total_imported", "fingerprint", "updated_at"]
CHECKPOINT_CONFLICT_COLUMNS = ["source"]

# Header names expected in a coach CSV export
REQUIRED_CSV_COLUMNS = [
    "Sport",
    "School",
    "Conference",
    "Division",
    "State",
    "Coach Name",
    "Coach Role",
    "Email",
    "Phone",
]


def ensure_schema(service: DatabaseService) -> None:
    """Create the coaches and import_checkpoints tables if they don't exist."""
    service.execute_ddl(COACHES_TABLE_DDL.format(identity_column=service.identity_column))
    service.execute_ddl(CHECKPOINTS_TABLE_DDL)
