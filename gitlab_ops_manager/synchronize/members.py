"""Contains synchronization logic for project and group memberships."""

from typing import Any, Awaitable, Callable, Mapping, Sequence

import structlog

from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from gitlab_ops_manager.schemas.gitlab import AccessLevel, Member
from gitlab_ops_manager.synchronize.diff import compute_diff
from gitlab_ops_manager.synchronize.exceptions import sync_step
from gitlab_ops_manager.synchronize.models import MembershipProvenance, MembershipRecord
from gitlab_ops_manager.synchronize.results import MembershipSynchronizationResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DesiredMembers = Mapping[int, AccessLevel | int | str]
"""User ID to access level (an AccessLevel, its number, or its name such as "developer")."""

MemberWriter = Callable[[int | str, int, AccessLevel], Awaitable[Any]]
MemberRemover = Callable[[int | str, int], Awaitable[Any]]


def desired_membership_records(desired: DesiredMembers) -> list[MembershipRecord]:
    """Validate a desired membership map. Raises InvalidAccessLevelError on unknown levels."""
    return [MembershipRecord(int(user_id), AccessLevel.parse(level)) for user_id, level in desired.items()]


def membership_records(members: Sequence[Member], provenance: MembershipProvenance = MembershipProvenance.DIRECT) -> list[MembershipRecord]:
    """Convert members returned by GitLab into membership records."""
    return [MembershipRecord(member.id, member.access_level, provenance, member.username) for member in members]


def _access_level_differs(desired: MembershipRecord, current: MembershipRecord) -> bool:
    return desired.access_level != current.access_level


async def _reconcile_memberships(
    target: str,
    target_id: int | str,
    desired: list[MembershipRecord],
    direct: list[MembershipRecord],
    inherited: list[MembershipRecord],
    remove: bool,
    add_member: MemberWriter,
    edit_member: MemberWriter,
    remove_member: MemberRemover,
) -> MembershipSynchronizationResult:
    """Apply the difference between desired and direct memberships.

    Subjects present only through inheritance count as present: they are never
    added, updated or removed, even when their inherited level differs.
    """
    inherited_by_id = {record.user_id: record for record in inherited}
    skipped: list[MembershipRecord] = []
    reconcilable: list[MembershipRecord] = []
    for record in desired:
        inherited_record = inherited_by_id.get(record.user_id)
        if inherited_record is None:
            reconcilable.append(record)
            continue
        if inherited_record.access_level != record.access_level:
            logger.warning(
                "Not changing inherited membership",
                target=target,
                target_id=target_id,
                user_id=record.user_id,
                inherited_access_level=inherited_record.access_level,
                desired_access_level=int(record.access_level),
            )
            skipped.append(inherited_record)

    diff = compute_diff(reconcilable, direct, key=lambda record: record.user_id, remove=remove, differs=_access_level_differs)
    logger.info(
        "Computed membership differences",
        target=target,
        target_id=target_id,
        to_add=len(diff.to_create),
        to_update=len(diff.to_update),
        to_remove=len(diff.to_remove),
        inherited_count=len(inherited),
    )

    for record in diff.to_create:
        with sync_step(f"Adding user {record.user_id} to {target} {target_id}", user_id=record.user_id):
            await add_member(target_id, record.user_id, AccessLevel(record.access_level))
    for record, _ in diff.to_update:
        with sync_step(f"Setting access of user {record.user_id} on {target} {target_id}", user_id=record.user_id):
            await edit_member(target_id, record.user_id, AccessLevel(record.access_level))
    for record in diff.to_remove:
        with sync_step(f"Removing user {record.user_id} from {target} {target_id}", user_id=record.user_id):
            await remove_member(target_id, record.user_id)

    removed_ids = {record.user_id for record in diff.to_remove}
    updated_by_id = {record.user_id: record for record, _ in diff.to_update}
    present = [updated_by_id.get(record.user_id, record) for record in direct if record.user_id not in removed_ids]
    present.extend(diff.to_create)
    present.extend(inherited)
    return MembershipSynchronizationResult(
        added=diff.to_create,
        updated=[record for record, _ in diff.to_update],
        removed=diff.to_remove,
        skipped_inherited=skipped,
        present=present,
    )


async def sync_project_members(
    adapter: GitLabAdapter,
    project_id: int | str,
    desired: DesiredMembers,
    remove: bool = False,
    include_inherited: bool = True,
) -> MembershipSynchronizationResult:
    """Bring the direct members of a project in line with a desired user ID to access level map.

    Missing users are added and users at a different level are updated. With
    ``remove``, direct members absent from ``desired`` are removed. With
    ``include_inherited``, members inherited from ancestor groups are fetched too
    and treated as present but left untouched.
    """
    desired_records = desired_membership_records(desired)
    with sync_step(f"Fetching members of project {project_id}", project_id=project_id):
        direct = membership_records(await adapter.list_project_members(project_id))
        inherited: list[MembershipRecord] = []
        if include_inherited:
            direct_ids = {record.user_id for record in direct}
            all_members = await adapter.list_all_project_members(project_id)
            inherited = [
                record
                for record in membership_records(all_members, MembershipProvenance.INHERITED)
                if record.user_id not in direct_ids
            ]
    return await _reconcile_memberships(
        "project",
        project_id,
        desired_records,
        direct,
        inherited,
        remove,
        adapter.add_project_member,
        adapter.edit_project_member,
        adapter.remove_project_member,
    )


async def sync_group_members(
    adapter: GitLabAdapter,
    group_id: int | str,
    desired: DesiredMembers,
    remove: bool = False,
) -> MembershipSynchronizationResult:
    """Bring the direct members of a group in line with a desired user ID to access level map."""
    desired_records = desired_membership_records(desired)
    with sync_step(f"Fetching members of group {group_id}", group_id=group_id):
        direct = membership_records(await adapter.list_group_members(group_id))
    return await _reconcile_memberships(
        "group",
        group_id,
        desired_records,
        direct,
        [],
        remove,
        adapter.add_group_member,
        adapter.edit_group_member,
        adapter.remove_group_member,
    )


async def set_users(adapter: GitLabAdapter, project_id: int | str, users: DesiredMembers) -> MembershipSynchronizationResult:
    """Make the direct members of a project exactly ``users``, removing everyone else."""
    return await sync_project_members(adapter, project_id, users, remove=True, include_inherited=False)


def _as_id_list(user_ids: int | Sequence[int]) -> list[int]:
    if isinstance(user_ids, int):
        return [user_ids]
    return list(user_ids)


async def lookup_users(adapter: GitLabAdapter, emails: Sequence[str]) -> list[int | None]:
    """Resolve email addresses to user IDs. Unknown addresses resolve to None, in place."""
    user_ids: list[int | None] = []
    for email in emails:
        with sync_step("User lookup", email=email):
            users = await adapter.search_users(email)
        user_ids.append(users[0].id if users else None)
        if not users:
            logger.warning("No user found for email", email=email)
    return user_ids


async def add_users(
    adapter: GitLabAdapter,
    project_id: int | str,
    user_ids: int | Sequence[int],
    level: AccessLevel | int | str = AccessLevel.DEVELOPER,
) -> None:
    """Add one or more users to a project, all at the same level."""
    access_level = AccessLevel.parse(level)
    for user_id in _as_id_list(user_ids):
        with sync_step(f"Adding user {user_id} to project {project_id}"):
            await adapter.add_project_member(project_id, user_id, access_level)


async def set_user_access(
    adapter: GitLabAdapter,
    project_id: int | str,
    user_ids: int | Sequence[int],
    level: AccessLevel | int | str = AccessLevel.DEVELOPER,
) -> None:
    """Set the access level of one or more project members."""
    access_level = AccessLevel.parse(level)
    for user_id in _as_id_list(user_ids):
        with sync_step(f"Setting access of user {user_id} on project {project_id}"):
            await adapter.edit_project_member(project_id, user_id, access_level)


async def remove_users(adapter: GitLabAdapter, project_id: int | str, user_ids: int | Sequence[int]) -> None:
    """Remove one or more users from a project."""
    for user_id in _as_id_list(user_ids):
        with sync_step(f"Removing user {user_id} from project {project_id}"):
            await adapter.remove_project_member(project_id, user_id)
