"""Tests for roast threads and the fold hand-off."""

import httpx
import pytest
from sqlalchemy.exc import OperationalError

import edge_functions
from errors import SideEffectFailure
from factories import MONDAY, make_check_in, make_pact
from models.roast_thread import RoastThread
from services import roast_service
from services.roast_service import RoastThreadService, notify_fold, open_roast_thread


@pytest.fixture
def fold(db):
    pact = make_pact(db, ["bob"])
    return make_check_in(db, pact, "bob", MONDAY, "fold", excuse="rain")


class TestCreate:
    def test_opens_thread(self, db, fold):
        thread = RoastThreadService.create(db, fold.id)
        assert thread.status == "open"
        assert RoastThreadService.get_for_check_in(db, fold.id).id == thread.id

    def test_second_create_returns_existing(self, db, fold):
        first = RoastThreadService.create(db, fold.id)
        second = RoastThreadService.create(db, fold.id)
        assert first.id == second.id
        assert db.query(RoastThread).count() == 1

    def test_failed_lookup_after_conflict(self, db, fold, monkeypatch):
        RoastThreadService.create(db, fold.id)

        def unavailable(session, check_in_id):
            raise OperationalError("SELECT roast_threads", {}, Exception("connection reset"))

        monkeypatch.setattr(RoastThreadService, "get_for_check_in", staticmethod(unavailable))
        with pytest.raises(SideEffectFailure):
            RoastThreadService.create(db, fold.id)


class TestBackgroundTask:
    def test_uses_its_own_session(self, db, fold):
        open_roast_thread(fold.id)
        assert db.query(RoastThread).filter_by(check_in_id=fold.id).count() == 1

    def test_thread_failure_is_logged_not_raised(self, db, fold, monkeypatch, caplog):
        def boom(session, check_in_id):
            raise SideEffectFailure("insert rejected")

        monkeypatch.setattr(RoastThreadService, "create", staticmethod(boom))
        open_roast_thread(fold.id)
        assert "Create roast thread failed" in caplog.text
        assert db.query(RoastThread).count() == 0

    def test_push_failure_keeps_thread(self, db, fold, monkeypatch, caplog):
        def unreachable(name, body):
            raise httpx.ConnectError("edge function unreachable")

        monkeypatch.setattr(roast_service, "functions_configured", lambda: True)
        monkeypatch.setattr(roast_service, "invoke_function", unreachable)
        open_roast_thread(fold.id)
        assert "Fold notification failed" in caplog.text
        assert db.query(RoastThread).count() == 1

    def test_non_json_reply_is_logged_not_raised(self, db, fold, monkeypatch, caplog):
        real_client = httpx.Client

        def gateway_page(request):
            return httpx.Response(200, text="<html>Bad Gateway</html>")

        monkeypatch.setattr(edge_functions, "SUPABASE_URL", "https://project.supabase.co")
        monkeypatch.setattr(edge_functions.httpx, "Client",
                            lambda **kw: real_client(transport=httpx.MockTransport(gateway_page), **kw))
        monkeypatch.setattr(roast_service, "functions_configured", lambda: True)

        open_roast_thread(fold.id)
        assert "Fold notification failed" in caplog.text
        assert db.query(RoastThread).count() == 1


class TestNotifyFold:
    def test_skipped_when_not_configured(self, db, fold):
        assert notify_fold(db, fold.id) is False

    def test_posts_fold_details(self, db, fold, monkeypatch):
        calls = []
        monkeypatch.setattr(roast_service, "functions_configured", lambda: True)
        monkeypatch.setattr(roast_service, "invoke_function", lambda name, body: calls.append((name, body)))

        assert notify_fold(db, fold.id) is True
        name, body = calls[0]
        assert name == "notify-fold"
        assert body == {"checkInId": fold.id, "folderId": "bob", "pactId": fold.pact_id, "groupId": "group-1"}

    def test_missing_check_in(self, db, monkeypatch):
        monkeypatch.setattr(roast_service, "functions_configured", lambda: True)
        with pytest.raises(SideEffectFailure):
            notify_fold(db, "gone")
