from datetime import datetime, timedelta, timezone

import pytest

from app.models.audit_log import AuditLog
from app.services import sharing
from app.services.capabilities import validate_share_token
from app.services.errors import Conflict, ExpiredCapability, Forbidden, InvalidArgument, NotFound
from app.services.policy import LinkActor, UserActor


def test_share_with_registered_user_notifies(db, document, owner, signer, notifier):
    share, notified = sharing.share_with_user(db, document.id, UserActor(owner.id), "Signer@Example.com", notifier)
    assert share.user_id == signer.id
    assert notified is True
    (recipient, subject, body), = notifier.sent
    assert recipient == signer.email
    assert "contract.pdf" in subject
    assert [d.id for d in sharing.list_shared_with(db, signer.id)] == [document.id]


def test_share_twice_conflicts(db, document, owner, signer, notifier):
    sharing.share_with_user(db, document.id, UserActor(owner.id), signer.email, notifier)
    with pytest.raises(Conflict):
        sharing.share_with_user(db, document.id, UserActor(owner.id), signer.email, notifier)


def test_share_with_self_is_invalid(db, document, owner, notifier):
    with pytest.raises(InvalidArgument):
        sharing.share_with_user(db, document.id, UserActor(owner.id), owner.email, notifier)


def test_share_with_unknown_email(db, document, owner, notifier):
    with pytest.raises(NotFound):
        sharing.share_with_user(db, document.id, UserActor(owner.id), "nobody@example.com", notifier)


def test_only_owner_may_share(db, document, signer, stranger, notifier):
    with pytest.raises(Forbidden):
        sharing.share_with_user(db, document.id, UserActor(stranger.id), signer.email, notifier)


def test_failed_notification_keeps_the_grant(db, document, owner, signer, notifier):
    notifier.fail = True
    share, notified = sharing.share_with_user(db, document.id, UserActor(owner.id), signer.email, notifier)
    assert notified is False
    db.refresh(document)
    assert [s.user_id for s in document.shares] == [signer.id]


def test_remove_share(db, document, owner, signer, notifier):
    sharing.share_with_user(db, document.id, UserActor(owner.id), signer.email, notifier)
    sharing.remove_share(db, document.id, UserActor(owner.id), signer.id)
    assert sharing.list_shared_with(db, signer.id) == []
    with pytest.raises(NotFound):
        sharing.remove_share(db, document.id, UserActor(owner.id), signer.id)


def test_share_link_is_stored_and_valid(db, document, owner):
    link = sharing.issue_share_link(db, document.id, UserActor(owner.id))
    db.refresh(document)
    assert document.share_token == link.token
    assert link.sign_url == f"http://frontend.test/sign/{link.token}"
    assert validate_share_token(document, link.token)
    assert sharing.resolve_share_token(db, link.token).id == document.id


def test_regenerated_link_invalidates_previous_one(db, document, owner):
    first = sharing.issue_share_link(db, document.id, UserActor(owner.id))
    second = sharing.issue_share_link(db, document.id, UserActor(owner.id))
    assert first.token != second.token
    db.refresh(document)
    assert not validate_share_token(document, first.token)
    assert validate_share_token(document, second.token)
    with pytest.raises(ExpiredCapability):
        sharing.resolve_share_token(db, first.token)


def test_link_expires_after_24_hours(db, document, owner):
    minted = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    link = sharing.issue_share_link(db, document.id, UserActor(owner.id), now=minted)
    assert link.expires_at == minted + timedelta(hours=24)
    assert sharing.resolve_share_token(db, link.token, now=minted + timedelta(hours=23)).id == document.id
    with pytest.raises(ExpiredCapability):
        sharing.resolve_share_token(db, link.token, now=minted + timedelta(hours=24, seconds=1))


def test_revoked_link_stops_working(db, document, owner):
    link = sharing.issue_share_link(db, document.id, UserActor(owner.id))
    sharing.revoke_share_link(db, document.id, UserActor(owner.id))
    with pytest.raises(ExpiredCapability):
        sharing.resolve_share_token(db, link.token)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_garbage_tokens_are_rejected(db, document, token):
    with pytest.raises(ExpiredCapability):
        sharing.resolve_share_token(db, token)


def test_link_holder_cannot_mint_links(db, document, owner):
    link = sharing.issue_share_link(db, document.id, UserActor(owner.id))
    with pytest.raises(Forbidden):
        sharing.issue_share_link(db, document.id, LinkActor(share_token=link.token))


def test_link_email_is_sent_and_failure_reported(db, document, owner, notifier):
    link = sharing.issue_share_link(
        db, document.id, UserActor(owner.id), notifier, recipient_email="guest@example.com"
    )
    assert link.notified is True
    assert link.sign_url in notifier.sent[0][2]

    notifier.fail = True
    link = sharing.issue_share_link(
        db, document.id, UserActor(owner.id), notifier, recipient_email="guest@example.com"
    )
    assert link.notified is False
    db.refresh(document)
    assert document.share_token == link.token


def test_shares_are_audited(db, document, owner, signer, notifier):
    sharing.share_with_user(db, document.id, UserActor(owner.id), signer.email, notifier)
    sharing.issue_share_link(db, document.id, UserActor(owner.id))
    rows = db.query(AuditLog).filter(AuditLog.action == "shared").order_by(AuditLog.id).all()
    assert [r.meta["mechanism"] for r in rows] == ["grant", "link"]
