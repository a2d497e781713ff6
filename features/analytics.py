# features/analytics.py
import httpx

import config
from utils import log


class Analytics:
    """
    Queues events for one request.
    flush() posts them to the GA measurement protocol when configured,
    otherwise they are only logged.
    """

    def __init__(self, client_id: str):
        self.client_id = client_id
        self.events: list[dict] = []

    def track(self, name: str, params: dict) -> None:
        log("EVENT:", name, params)
        self.events.append({"name": name, "params": params})

    def track_language_switch(self, lang: str) -> None:
        self.track("language_switch", {"language": lang})

    def pageview(self, url: str) -> None:
        self.track("page_view", {"page_location": url})

    async def flush(self) -> None:
        events, self.events = self.events, []
        if not events or not (config.GA_MEASUREMENT_ID and config.GA_API_SECRET):
            return

        payload = {"client_id": self.client_id, "events": events}
        try:
            async with httpx.AsyncClient(timeout=15) as client:
                r = await client.post(
                    config.GA_ENDPOINT,
                    params={
                        "measurement_id": config.GA_MEASUREMENT_ID,
                        "api_secret": config.GA_API_SECRET,
                    },
                    json=payload,
                )
                log("GA status:", r.status_code)
                r.raise_for_status()
        except httpx.HTTPError as e:
            log("GA error:", str(e))
