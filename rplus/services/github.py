from typing import Dict, Optional

import httpx

from rplus.status import CommitState, StatusReportError


class GitHubClient:
    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport  # tests pass an httpx.MockTransport here

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "Content-Type": "application/json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def create_status(
        self,
        repo: str,
        sha: str,
        state: CommitState,
        description: str = "",
        context: str = "github/reviews",
    ) -> Dict:
        """
        POST /repos/{owner}/{repo}/statuses/{sha}
        Only 200/201 count as success; anything else raises StatusReportError
        with the response body (newlines stripped) attached.
        """
        url = f"{self.base_url}/repos/{repo}/statuses/{sha}"
        payload = {
            "state": CommitState(state).value,
            "description": description,
            "context": context,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                r = await client.post(url, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            raise StatusReportError(f"request to {url} failed: {e}") from e

        if r.status_code in (200, 201):
            try:
                return r.json()
            except ValueError:
                return {}
        raise StatusReportError(
            "unexpected response status code",
            status_code=r.status_code,
            body=r.text.replace("\n", ""),
        )
