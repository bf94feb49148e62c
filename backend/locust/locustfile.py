"""
Locust Load Test Suite

Villas come from the listing service, so seed one first and export its id:
  LOAD_VILLA_ID=<uuid> locust -f locustfile.py --host http://localhost:8000

Run scenarios:
  locust -f locustfile.py --tags contention   # Same dates, many guests
  locust -f locustfile.py --tags browse       # Availability and quotes
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
import uuid
from datetime import date, timedelta

from locust import HttpUser, between, events, tag, task

VILLA_ID = os.environ.get("LOAD_VILLA_ID", "")
CONTENTION_CHECK_IN = date.today() + timedelta(days=60)
CONTENTION_CHECK_OUT = CONTENTION_CHECK_IN + timedelta(days=3)


def guest_headers() -> dict:
    return {"X-User-Id": f"load-{uuid.uuid4().hex[:12]}", "X-User-Role": "guest"}


def random_stay() -> tuple[str, str]:
    check_in = date.today() + timedelta(days=random.randint(90, 400))
    check_out = check_in + timedelta(days=random.randint(1, 10))
    return check_in.isoformat(), check_out.isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    if VILLA_ID:
        print(f"Target villa: {VILLA_ID}")
        print(f"Contention window: {CONTENTION_CHECK_IN} .. {CONTENTION_CHECK_OUT}")
    else:
        print("LOAD_VILLA_ID is not set; booking tasks will be skipped")
    print("=" * 60)


class ContentionUser(HttpUser):
    """
    TEST 1: Contention - many guests -> one set of dates

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM calendar_events
      WHERE villa_id = X AND start_date < 'out' AND end_date > 'in';
    Should be <= 1
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = guest_headers()

    @tag("contention")
    @task
    def hold_same_dates(self):
        if not VILLA_ID:
            return

        with self.client.post(
            "/api/v1/bookings/hold",
            json={
                "villa_id": VILLA_ID,
                "check_in": CONTENTION_CHECK_IN.isoformat(),
                "check_out": CONTENTION_CHECK_OUT.isoformat(),
                "adults": 2,
            },
            headers=self.headers,
            name="/api/v1/bookings/hold [contended]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: someone else holds the dates
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class BrowseUser(HttpUser):
    """
    TEST 2: Read path - availability checks and price quotes

    Run: locust -f locustfile.py --tags browse -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    @tag("browse")
    @task(10)
    def check_availability(self):
        if not VILLA_ID:
            return
        check_in, check_out = random_stay()
        self.client.get(
            f"/api/v1/villas/{VILLA_ID}/availability?check_in={check_in}&check_out={check_out}",
            name="/api/v1/villas/{id}/availability",
        )

    @tag("browse")
    @task(5)
    def quote_price(self):
        if not VILLA_ID:
            return
        check_in, check_out = random_stay()
        self.client.get(
            f"/api/v1/villas/{VILLA_ID}/price?check_in={check_in}&check_out={check_out}&adults=2",
            name="/api/v1/villas/{id}/price",
        )

    @tag("browse")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = guest_headers()

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_villa(self):
        check_in, check_out = random_stay()
        with self.client.post(
            "/api/v1/bookings/hold",
            json={"villa_id": str(uuid.uuid4()), "check_in": check_in, "check_out": check_out},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def reversed_dates(self):
        check_in, check_out = random_stay()
        with self.client.post(
            "/api/v1/bookings/hold",
            json={"villa_id": VILLA_ID or "x", "check_in": check_out, "check_out": check_in},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (422,))

    @tag("edge")
    @task
    def no_adults(self):
        check_in, check_out = random_stay()
        with self.client.post(
            "/api/v1/bookings/hold",
            json={"villa_id": VILLA_ID or "x", "check_in": check_in, "check_out": check_out, "adults": 0},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (422,))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/bookings/hold",
            data="not json at all",
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))

    @tag("edge")
    @task
    def missing_identity(self):
        check_in, check_out = random_stay()
        with self.client.post(
            "/api/v1/bookings/hold",
            json={"villa_id": VILLA_ID or "x", "check_in": check_in, "check_out": check_out},
            catch_response=True,
        ) as resp:
            self._expect(resp, (401,))

    @tag("edge")
    @task
    def confirm_unknown_booking(self):
        with self.client.post(
            f"/api/v1/bookings/{uuid.uuid4()}/confirm",
            headers=self.headers,
            name="/api/v1/bookings/{id}/confirm [unknown]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing
      - Some holds, most confirmed, some cancelled
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = guest_headers()
        self.booking_ids: list[str] = []

    @task(30)
    def browse(self):
        if not VILLA_ID:
            return
        check_in, check_out = random_stay()
        self.client.get(
            f"/api/v1/villas/{VILLA_ID}/price?check_in={check_in}&check_out={check_out}",
            name="/api/v1/villas/{id}/price",
        )

    @task(5)
    def hold_and_confirm(self):
        if not VILLA_ID:
            return
        check_in, check_out = random_stay()
        resp = self.client.post(
            "/api/v1/bookings/hold",
            json={"villa_id": VILLA_ID, "check_in": check_in, "check_out": check_out, "adults": 2},
            headers=self.headers,
        )
        if resp.status_code != 201:
            return
        booking_id = resp.json()["id"]
        if random.random() < 0.8:
            self.client.post(
                f"/api/v1/bookings/{booking_id}/confirm",
                headers=self.headers,
                name="/api/v1/bookings/{id}/confirm",
            )
        self.booking_ids.append(booking_id)

    @task(1)
    def cancel(self):
        if not self.booking_ids:
            return
        booking_id = self.booking_ids.pop(random.randrange(len(self.booking_ids)))
        self.client.post(
            f"/api/v1/bookings/{booking_id}/cancel",
            json={"reason": "plans changed"},
            headers=self.headers,
            name="/api/v1/bookings/{id}/cancel",
        )
