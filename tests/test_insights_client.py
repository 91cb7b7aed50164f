"""
Tests for utils.polling and ingestion.insights_client: HTTP is mocked.
"""
from unittest.mock import MagicMock

import pytest
import requests

from engine.change_detector import analyze_data_changes
from ingestion.insights_client import InsightsClient
from utils.errors import PollingTimeoutError, ScoringServiceError
from utils.polling import poll_until_complete


def _response(status_code, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.json.return_value = payload
    return resp


# ---------------------------------------------------------------------------
# poll_until_complete
# ---------------------------------------------------------------------------

class TestPolling:
    def test_returns_first_result(self):
        check = MagicMock(side_effect=[None, None, ["done"]])
        sleep = MagicMock()
        assert poll_until_complete(check, max_attempts=5, interval=2, sleep=sleep) == ["done"]
        assert check.call_count == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(2)

    def test_times_out(self):
        check = MagicMock(return_value=None)
        sleep = MagicMock()
        with pytest.raises(PollingTimeoutError, match="timed out after 60 seconds"):
            poll_until_complete(check, max_attempts=30, interval=2.0, sleep=sleep)
        assert check.call_count == 30
        assert sleep.call_count == 29

    def test_retries_errors_then_succeeds(self):
        check = MagicMock(side_effect=[OSError("reset"), "ok"])
        assert poll_until_complete(check, max_attempts=3, interval=0, sleep=MagicMock()) == "ok"

    def test_error_on_last_attempt_propagates(self):
        check = MagicMock(side_effect=OSError("down"))
        with pytest.raises(OSError):
            poll_until_complete(check, max_attempts=2, interval=0, sleep=MagicMock())
        assert check.call_count == 2

    def test_unlisted_errors_are_not_retried(self):
        check = MagicMock(side_effect=KeyError("bug"))
        with pytest.raises(KeyError):
            poll_until_complete(check, max_attempts=5, interval=0, sleep=MagicMock())
        assert check.call_count == 1


# ---------------------------------------------------------------------------
# InsightsClient
# ---------------------------------------------------------------------------

@pytest.fixture
def session():
    return MagicMock(spec=requests.Session, headers={})


@pytest.fixture
def client(session):
    return InsightsClient(api_url="http://scoring.test/jobs", api_key="key", session=session)


def test_auth_headers(client, session):
    assert session.headers["Authorization"] == "Bearer key"
    assert session.headers["apikey"] == "key"


def test_start_job(client, session):
    session.post.return_value = _response(200, {"job_id": "job-1"})
    assert client.start_job([{"tenant": "X"}], "user-1") == "job-1"
    _, kwargs = session.post.call_args
    assert kwargs["json"] == {"tenants": [{"tenant": "X"}], "user_id": "user-1"}


def test_start_job_failure(client, session):
    session.post.return_value = _response(500)
    with pytest.raises(ScoringServiceError, match="Failed to start insight generation: 500"):
        client.start_job([], "user-1")


def test_start_job_without_id(client, session):
    session.post.return_value = _response(200, {})
    with pytest.raises(ScoringServiceError, match="No job ID"):
        client.start_job([], "user-1")


def test_check_job_statuses(client, session):
    session.get.return_value = _response(202)
    assert client.check_job("job-1") is None

    session.get.return_value = _response(200, [{"tenant_name": "X"}])
    assert client.check_job("job-1") == [{"tenant_name": "X"}]

    session.get.return_value = _response(500)
    with pytest.raises(ScoringServiceError, match="Polling failed: 500"):
        client.check_job("job-1")


def test_wait_for_results_polls_until_ready(client, session):
    session.get.side_effect = [_response(202), _response(503), _response(200, [{"score": 80}])]
    sleep = MagicMock()
    assert client.wait_for_results("job-1", max_attempts=5, interval=2, sleep=sleep) == [{"score": 80}]
    assert sleep.call_count == 2


def test_wait_for_results_empty_is_error(client, session):
    session.get.return_value = _response(200, [])
    with pytest.raises(ScoringServiceError, match="No insights were generated"):
        client.wait_for_results("job-1", max_attempts=1, sleep=MagicMock())


def test_score_changes_skips_unchanged(client, session):
    prior = [{"property": "A", "unit": "1", "tenant": "X", "past_due": 100}]
    summary = analyze_data_changes([{"property": "A", "unit": "1", "tenant": "X", "pastDue": 100}], prior)
    assert client.score_changes(summary, "user-1") == []
    session.post.assert_not_called()


def test_score_changes_sends_only_changed(client, session):
    prior = [{"property": "A", "unit": "1", "tenant": "X", "past_due": 100}]
    new = [
        {"property": "A", "unit": "1", "tenant": "X", "pastDue": 100},
        {"property": "A", "unit": "2", "tenant": "Y", "pastDue": 0},
    ]
    session.post.return_value = _response(200, {"job_id": "job-2"})
    session.get.return_value = _response(200, [{"tenant_name": "Y"}])

    results = client.score_changes(analyze_data_changes(new, prior), "user-1", sleep=MagicMock())

    assert results == [{"tenant_name": "Y"}]
    sent = session.post.call_args.kwargs["json"]["tenants"]
    assert [t["unit"] for t in sent] == ["2"]
