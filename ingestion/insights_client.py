"""
Tenant scoring service client

Scoring runs as an asynchronous job: a POST starts it and returns a job id,
then GET requests answer 202 while processing and 200 with the results.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from config import settings
from models.tenant import ChangeSummary
from utils.errors import ScoringServiceError
from utils.polling import poll_until_complete

logger = logging.getLogger(__name__)


class InsightsClient:
    """
    Client for the external tenant scoring job endpoint
    """

    def __init__(
        self,
        api_url: str = None,
        api_key: str = None,
        timeout: float = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url or settings.INSIGHTS_API_URL
        self.api_key = api_key or settings.INSIGHTS_API_KEY
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
        self.session = session or requests.Session()
        self.session.headers.update(self._headers())

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def start_job(self, tenants: List[Dict[str, Any]], user_id: str) -> str:
        """Submit tenant records for scoring and return the job id"""
        response = self.session.post(
            self.api_url,
            json={"tenants": tenants, "user_id": user_id},
            timeout=self.timeout,
        )
        if not response.ok:
            raise ScoringServiceError(
                f"Failed to start insight generation: {response.status_code}",
                response.status_code,
            )

        job_id = response.json().get("job_id")
        if not job_id:
            raise ScoringServiceError("No job ID received from server", response.status_code)

        logger.info("Scoring job %s started for %d tenants", job_id, len(tenants))
        return job_id

    def check_job(self, job_id: str) -> Optional[Any]:
        """Results when the job is done, None while it is still processing"""
        response = self.session.get(
            self.api_url,
            params={"job_id": job_id},
            timeout=self.timeout,
        )
        if response.status_code == 200:
            return response.json()
        if response.status_code == 202:
            return None
        raise ScoringServiceError(f"Polling failed: {response.status_code}", response.status_code)

    def wait_for_results(
        self,
        job_id: str,
        max_attempts: Optional[int] = None,
        interval: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> List[Dict[str, Any]]:
        """Poll the job until it completes; raises PollingTimeoutError when it never does"""
        results = poll_until_complete(
            lambda: self.check_job(job_id),
            max_attempts=max_attempts,
            interval=interval,
            retry_on=(ScoringServiceError, requests.RequestException),
            sleep=sleep,
            description=f"scoring job {job_id}",
        )
        if not isinstance(results, list) or not results:
            raise ScoringServiceError("No insights were generated")
        return results

    def score_changes(
        self,
        summary: ChangeSummary,
        user_id: str,
        sleep: Callable[[float], None] = time.sleep,
    ) -> List[Dict[str, Any]]:
        """Score only new and changed tenants; nothing is sent when none changed"""
        if not summary.records_to_score:
            logger.info("No changed tenants; skipping scoring")
            return []

        tenants = [record.to_dict() for record in summary.records_to_score]
        job_id = self.start_job(tenants, user_id)
        return self.wait_for_results(job_id, sleep=sleep)
