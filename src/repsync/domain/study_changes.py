"""Plan the structural changes of a study synchronisation pass."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from repsync.domain.mutations import (
    DeleteStudy,
    RenameStudy,
    SetRemovedOnRemote,
    StudyMutation,
)
from repsync.domain.study import RemoteStudyMetadata, Study, StudyUpdate


@dataclass(frozen=True, slots=True)
class ContentRefresh:
    """A local study whose remote content changed since it was last fetched."""

    study: Study
    remote: RemoteStudyMetadata


@dataclass
class StudyChangePlan:
    """Work derived from comparing local studies with the remote listing.

    ``mutations`` hold the structural changes committed together at the end of
    the pass. New studies and content refreshes need a network round trip each
    and are committed one study at a time.
    """

    new_studies: list[RemoteStudyMetadata] = field(default_factory=list)
    staged_updates: list[ContentRefresh] = field(default_factory=list)
    direct_updates: list[ContentRefresh] = field(default_factory=list)
    mutations: list[StudyMutation] = field(default_factory=list)
    num_renamed_studies: int = 0
    num_removed_studies: int = 0


def has_newer_remote_version(
    study: Study,
    remote: RemoteStudyMetadata,
    pending_update: StudyUpdate | None,
) -> bool:
    """Return True when remote content should be fetched for ``study``.

    Lichess does not bump the modification time of studies with sync disabled,
    so a pending update at least as recent as the remote timestamp already
    covers the change.
    """
    if not study.last_fetched < remote.last_modified:
        return False
    return pending_update is None or pending_update.last_modified_on_remote < remote.last_modified


def _plan_existing_study(
    plan: StudyChangePlan,
    study: Study,
    remote: RemoteStudyMetadata,
    pending_update: StudyUpdate | None,
) -> None:
    if study.removed_on_remote:
        plan.mutations.append(SetRemovedOnRemote(study.study_id, False))
    if study.name != remote.name:
        plan.mutations.append(RenameStudy(study.study_id, remote.name))
        plan.num_renamed_studies += 1
    if not has_newer_remote_version(study, remote, pending_update):
        return
    if study.included:
        plan.staged_updates.append(ContentRefresh(study, remote))
    elif not study.hidden:
        plan.direct_updates.append(ContentRefresh(study, remote))


def _plan_missing_study(plan: StudyChangePlan, study: Study) -> None:
    if study.included:
        if not study.removed_on_remote:
            plan.mutations.append(SetRemovedOnRemote(study.study_id, True))
            plan.num_removed_studies += 1
        return
    plan.mutations.append(DeleteStudy(study.study_id))
    plan.num_removed_studies += 1


def plan_study_changes(
    existing: Iterable[Study],
    remote: Iterable[RemoteStudyMetadata],
    pending_updates: Mapping[str, StudyUpdate] | None = None,
) -> StudyChangePlan:
    """Compare local studies with the remote listing and plan the pass.

    Args:
        existing: Studies stored locally for the user.
        remote: Metadata reported by the remote service for the same user.
        pending_updates: Pending updates keyed by local study id.

    Returns:
        The plan, with rename and removal counts already computed.
    """
    pending_updates = pending_updates or {}
    existing_by_remote_id = {study.remote_id: study for study in existing}
    remote_by_id = {item.remote_id: item for item in remote}
    plan = StudyChangePlan()
    for remote_id, remote_study in remote_by_id.items():
        study = existing_by_remote_id.get(remote_id)
        if study is None:
            plan.new_studies.append(remote_study)
            continue
        _plan_existing_study(plan, study, remote_study, pending_updates.get(study.study_id))
    for remote_id, study in existing_by_remote_id.items():
        if remote_id not in remote_by_id:
            _plan_missing_study(plan, study)
    return plan
