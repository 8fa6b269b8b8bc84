"""Command-line interface for RezKyoo - HTTP client for the server API."""

import logging
import sys
import time
import uuid

import httpx

from rezkyoo.config import get_config, setup_logging

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 2.5
MAX_POLLS = 120


class RezkyooCLI:
    """Runs a search, starts calls and follows the batch until it completes."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        """Initialize the CLI."""
        self.config = get_config()
        setup_logging(self.config)

        self.client_id = f"cli-{uuid.uuid4().hex[:12]}"
        headers = {}
        if self.config.rezkyoo_id_token:
            headers["Authorization"] = f"Bearer {self.config.rezkyoo_id_token}"
        self.client = client or httpx.Client(
            base_url=self.config.server_url, timeout=120.0, headers=headers
        )
        logger.info(f"RezKyoo CLI initialized as HTTP client ({self.client_id})")

    def _post(self, path: str, payload: dict) -> dict:
        response = self.client.post(path, json=payload)
        data = response.json()
        if response.status_code != 200 or data.get("ok") is False:
            raise RuntimeError(data.get("error") or f"status {response.status_code}")
        return data

    def search(
        self,
        craving: str,
        location: str,
        party_size: int | None = None,
        date: str | None = None,
        time_: str | None = None,
    ) -> str:
        """Search for restaurants and return the batch ID."""
        payload = {
            "craving_text": craving,
            "location": location,
            "party_size": party_size,
            "date": date,
            "time": time_,
            "client_id": self.client_id,
        }
        result = self._post(
            "/api/mcp/find-restaurants",
            {key: value for key, value in payload.items() if value is not None},
        )
        return result["batchId"]

    def start_calls(self, batch_id: str) -> None:
        self._post("/api/mcp/start-calls", {"batchId": batch_id})

    def batch_status(self, batch_id: str) -> dict:
        return self._post("/api/mcp/get-batch-status", {"batchId": batch_id})

    def follow(self, batch_id: str, sleep=time.sleep) -> dict:
        """Poll batch status until completed, printing each item's progress.

        Returns:
            The final batch status
        """
        seen: dict[str, str] = {}
        status: dict = {}
        for _ in range(MAX_POLLS):
            status = self.batch_status(batch_id)
            for item in status.get("items", []):
                if seen.get(item["id"]) != item.get("status"):
                    seen[item["id"]] = item.get("status")
                    print(f"  {item['name']}: {item.get('status')}")
            if status.get("status") == "completed":
                return status
            sleep(POLL_INTERVAL_SECONDS)

        logger.warning(f"Batch {batch_id} still running after {MAX_POLLS} polls")
        return status

    @staticmethod
    def print_results(status: dict) -> None:
        print("\n" + "=" * 60)
        for item in status.get("items", []):
            result = item.get("result") or {}
            line = f"{item['name']}: {result.get('outcome', item.get('status'))}"
            if result.get("alt_time"):
                line += f" (alternative: {result['alt_time']})"
            print(line)
            if result.get("ai_summary"):
                print(f"    {result['ai_summary']}")
        print("=" * 60 + "\n")

    def run(self) -> None:
        """Run the CLI application."""
        print("\n" + "=" * 60)
        print("REZKYOO - Restaurant Reservation Concierge")
        print(f"server: {self.config.server_url}")
        print("=" * 60 + "\n")

        try:
            craving = input("What are you craving? ").strip()
            location = input("Where? ").strip()
            party = input("Party size (optional): ").strip()
            date = input("Date (optional): ").strip() or None
            time_ = input("Time (optional): ").strip() or None
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            return

        try:
            batch_id = self.search(
                craving, location, int(party) if party else None, date, time_
            )
            print(f"\nFound restaurants (batch {batch_id}). Starting calls...\n")
            self.start_calls(batch_id)
            self.print_results(self.follow(batch_id))
        except httpx.ConnectError:
            logger.exception("Cannot connect to server")
            print(f"\n⚠ Cannot connect to server at {self.config.server_url}")
            print("Make sure the server is running:")
            print("  python -m rezkyoo.server")
        except (httpx.HTTPError, RuntimeError, ValueError) as e:
            logger.error(f"Error processing request: {e}", exc_info=True)
            print(f"\n⚠ Error processing request: {e}")


def main() -> None:
    """Main entry point for the CLI."""
    try:
        get_config()
    except Exception as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    RezkyooCLI().run()


if __name__ == "__main__":
    main()
