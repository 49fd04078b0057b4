from __future__ import annotations

from types import SimpleNamespace

import grant_import.transaction.state as state_module


def _fake_frappe(*, request=None, job=None, in_test=False):
    return SimpleNamespace(
        local=SimpleNamespace(request=request, job=job),
        flags=SimpleNamespace(in_test=in_test),
    )


def test_without_frappe_nothing_is_managed(monkeypatch):
    monkeypatch.setattr(state_module, "frappe", None)

    assert state_module.is_frappe_managed_transaction() is False


def test_bare_script_is_not_managed(monkeypatch):
    monkeypatch.setattr(state_module, "frappe", _fake_frappe())

    assert state_module.is_frappe_managed_transaction() is False


def test_request_is_managed(monkeypatch):
    monkeypatch.setattr(state_module, "frappe", _fake_frappe(request=object()))

    assert state_module.in_request_context()
    assert state_module.is_frappe_managed_transaction()


def test_background_job_is_managed(monkeypatch):
    monkeypatch.setattr(state_module, "frappe", _fake_frappe(job=object()))

    assert state_module.in_background_job()
    assert state_module.is_frappe_managed_transaction()


def test_test_runner_is_managed(monkeypatch):
    monkeypatch.setattr(state_module, "frappe", _fake_frappe(in_test=True))

    assert state_module.in_test_context()
    assert state_module.is_frappe_managed_transaction()
