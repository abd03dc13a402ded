"""Who may do what to a document's signatures.

Actors are explicit: an authenticated user (who may also present a share link) or an
anonymous share-link holder. The relation to the document (owner, grant-list member,
signature creator, capability holder) is derived here from the records, never
inferred by callers.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from app.models.document import Document
from app.models.signature import Signature
from app.services.capabilities import validate_share_token
from app.services.errors import ExpiredCapability, Forbidden


@dataclass(frozen=True)
class UserActor:
    user_id: int
    share_token: str | None = None


@dataclass(frozen=True)
class LinkActor:
    share_token: str


Actor = Union[UserActor, LinkActor]


class Operation(str, enum.Enum):
    read = "read"
    create = "create"
    update = "update"
    set_status = "set_status"
    delete = "delete"
    # Document-level: share, revoke, delete document, audit trail
    manage = "manage"


def actor_user_id(actor: Actor) -> int | None:
    return actor.user_id if isinstance(actor, UserActor) else None


def is_owner(actor: Actor, document: Document) -> bool:
    return isinstance(actor, UserActor) and actor.user_id == document.owner_id


def is_grantee(actor: Actor, document: Document) -> bool:
    if not isinstance(actor, UserActor):
        return False
    return any(share.user_id == actor.user_id for share in document.shares)


def has_capability(actor: Actor, document: Document, now: datetime | None = None) -> bool:
    if not actor.share_token:
        return False
    return validate_share_token(document, actor.share_token, now=now)


def is_creator(actor: Actor, signature: Signature) -> bool:
    return (
        isinstance(actor, UserActor)
        and signature.user_id is not None
        and signature.user_id == actor.user_id
    )


def can_perform(
    actor: Actor,
    operation: Operation,
    document: Document,
    signature: Signature | None = None,
    now: datetime | None = None,
) -> bool:
    if is_owner(actor, document):
        return True

    if operation in (Operation.set_status, Operation.manage):
        return False

    if operation in (Operation.read, Operation.create):
        return is_grantee(actor, document) or has_capability(actor, document, now=now)

    if operation in (Operation.update, Operation.delete):
        if signature is None:
            return False
        if is_creator(actor, signature):
            return True
        # Link holders may only touch anonymous marks, never another identified signer's
        return signature.user_id is None and has_capability(actor, document, now=now)

    return False


def authorize(
    actor: Actor,
    operation: Operation,
    document: Document,
    signature: Signature | None = None,
    now: datetime | None = None,
) -> None:
    """Raise Forbidden, or ExpiredCapability when a presented link is no longer valid."""
    if can_perform(actor, operation, document, signature, now=now):
        return
    if actor.share_token and not has_capability(actor, document, now=now):
        raise ExpiredCapability()
    raise Forbidden(f"Not authorized to perform '{operation.value}' on this document.")
