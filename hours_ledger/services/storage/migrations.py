"""
Schema Migrations for Stored Records

DESIGN DECISION: Field renames are applied as explicit, numbered
migrations, once, when the store is opened. Read paths only ever see
the current field names; nothing downstream checks for old spellings.

The stored schema version lives next to the data (for Google Sheets,
in the Meta worksheet). A store at version N has had every migration
with version <= N applied.
"""

from pydantic import BaseModel, ConfigDict, Field


class Migration(BaseModel):
    """One schema step: a set of column renames."""
    model_config = ConfigDict(frozen=True)

    version: int = Field(..., ge=1)
    description: str
    renames: dict[str, str] = Field(default_factory=dict)


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version=1,
        description="Payment amount stored under a currency-neutral name",
        renames={
            "amount_irr": "amount",
            "amount_irt": "amount",
            "amountIRR": "amount",
            "amountIRT": "amount",
            "exchangeRate": "exchange_rate",
        },
    ),
)

CURRENT_SCHEMA_VERSION = max(m.version for m in MIGRATIONS)


class MigrationError(ValueError):
    """Stored data is newer than this code, or a rename collides."""
    pass


def pending_migrations(from_version: int) -> list[Migration]:
    """
    Migrations still to apply to data at `from_version`.

    Raises:
        MigrationError: If the data is from a newer schema than we know.
    """
    if from_version > CURRENT_SCHEMA_VERSION:
        raise MigrationError(
            f"Stored schema v{from_version} is newer than supported "
            f"v{CURRENT_SCHEMA_VERSION}"
        )
    return [m for m in MIGRATIONS if m.version > from_version]


def migrate_header(header: list[str], from_version: int) -> list[str]:
    """
    Rename columns of a sheet header.

    Raises:
        MigrationError: If a rename would produce a duplicate column.
    """
    migrated = list(header)
    for migration in pending_migrations(from_version):
        migrated = [migration.renames.get(name, name) for name in migrated]
        seen = set()
        for name in migrated:
            if name and name in seen:
                raise MigrationError(
                    f"Migration v{migration.version} produces duplicate column {name!r}"
                )
            seen.add(name)
    return migrated


def migrate_record(record: dict, from_version: int) -> dict:
    """
    Apply pending renames to a single record.

    Returns a new dict; the input is not modified.

    Raises:
        MigrationError: If both the old and the new name are present.
    """
    migrated = dict(record)
    for migration in pending_migrations(from_version):
        for old, new in migration.renames.items():
            if old not in migrated:
                continue
            if new in migrated:
                raise MigrationError(
                    f"Record has both {old!r} and {new!r}; cannot migrate"
                )
            migrated[new] = migrated.pop(old)
    return migrated
