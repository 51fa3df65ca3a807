"""Resolution of free-text task references."""

from collections.abc import Sequence

from pm_command_center.models import Task


class EntityResolver:
    """Resolves a task reference against a task snapshot.

    Exact id match (case-insensitive) wins; otherwise the first task in
    collection order whose name contains the reference. No further
    disambiguation is attempted.
    """

    def resolve(self, reference: str, tasks: Sequence[Task]) -> Task | None:
        """Return the best-matching task, or None when nothing matches."""
        query = reference.strip().lower()
        if not query:
            return None

        for task in tasks:
            if task.id.lower() == query:
                return task

        for task in tasks:
            if query in task.name.lower():
                return task

        return None
