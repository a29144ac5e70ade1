"""Contains results of synchronization operations."""

from gitlab_ops_manager.schemas.gitlab import Issue, Label, Milestone, Note
from gitlab_ops_manager.synchronize.identity import IdentityMap
from gitlab_ops_manager.synchronize.models import MembershipRecord


class LabelSynchronizationResult:
    """Contains results of the label synchronization."""

    def __init__(self, created: list[Label], destination_labels_before_sync: list[Label]) -> None:
        """Initialize the result with the labels created and those already present."""
        self.created = created
        self.destination_labels_before_sync = destination_labels_before_sync


class MilestoneSynchronizationResult:
    """Contains results of the milestone synchronization."""

    def __init__(self, created: list[Milestone], identity_map: IdentityMap) -> None:
        """Initialize the result with the milestones created and the completed identity map."""
        self.created = created
        self.identity_map = identity_map


class IssueSynchronizationResult:
    """Contains results of copying one issue."""

    def __init__(self, source_issue: Issue, destination_issue: Issue, notes: list[Note]) -> None:
        """Initialize the result with the source issue, its copy and the copied notes."""
        self.source_issue = source_issue
        self.destination_issue = destination_issue
        self.notes = notes


class AllIssueSynchronizationResults:
    """Contains results of the issue synchronization, including its label and milestone dependencies."""

    def __init__(
        self,
        labels: LabelSynchronizationResult,
        milestones: MilestoneSynchronizationResult,
        results: list[IssueSynchronizationResult],
    ) -> None:
        """Initialize the result with the dependency results and the per-issue results."""
        self.labels = labels
        self.milestones = milestones
        self.results = results

    @property
    def created_issues(self) -> list[Issue]:
        """The issues created in the destination."""
        return [result.destination_issue for result in self.results]


class MembershipSynchronizationResult:
    """Contains results of a membership reconciliation."""

    def __init__(
        self,
        added: list[MembershipRecord],
        updated: list[MembershipRecord],
        removed: list[MembershipRecord],
        skipped_inherited: list[MembershipRecord],
        present: list[MembershipRecord],
    ) -> None:
        """Initialize the result.

        ``present`` lists every membership after reconciliation, inherited ones included.
        """
        self.added = added
        self.updated = updated
        self.removed = removed
        self.skipped_inherited = skipped_inherited
        self.present = present
