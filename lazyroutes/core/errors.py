"""Exceptions shared across the migration core."""


class MigrationError(Exception):
    """A user-facing failure that stops the migration run.

    Raised for invalid inputs (path outside the project, path is a file,
    bad configuration) and for runs that find nothing to migrate.
    """


class ChangeConflictError(Exception):
    """Two scheduled edits overlap in a way that cannot be merged.

    Indicates a defect in whatever scheduled the edits; the change set is
    never returned in this state.
    """
