"""
Locust Load Test Suite

Reservations need validated accounts with credits and a published service,
and this API has no provisioning endpoints. Prepare them beforehand and pass:

  LOCUST_USERS      comma-separated "email:password" pairs of validated users
  LOCUST_TRACK_ID   an auto-accept track with a small guest ceiling
  LOCUST_API_KEY    operator key, used to top up wallets on start

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
import string
from datetime import date, timedelta
from locust import HttpUser, task, between, tag, events

USERS = [
    tuple(pair.split(":", 1))
    for pair in os.getenv("LOCUST_USERS", "").split(",")
    if ":" in pair
]
TRACK_ID = int(os.getenv("LOCUST_TRACK_ID", "1"))
API_KEY = os.getenv("LOCUST_API_KEY", "change-me-operator-key")

# Every concurrency user asks for the same days
RACE_FROM = date.today() + timedelta(days=14)
RACE_TO = RACE_FROM + timedelta(days=2)


def random_email():
    return f"load_{random.randint(10000, 99999)}@test.com"


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: {len(USERS)} validated accounts, track {TRACK_ID}, race {RACE_FROM}..{RACE_TO}")
    print("=" * 60)


class AuthenticatedUser(HttpUser):
    abstract = True

    def login(self, email, password):
        resp = self.client.post("/api/v1/auth/login", json={"email": email, "password": password})
        if resp.status_code != 200:
            self.headers = {}
            return None
        self.headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}
        return self.client.get("/api/v1/auth/me", headers=self.headers).json()


class ConcurrencyUser(AuthenticatedUser):
    """
    TEST 1: Concurrency - many users, one small auto-accept track

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify no day is over the ceiling:
      SELECT SUM(num_of_guests) FROM bookings
      WHERE service_id = X AND is_approved AND NOT is_cancelled;
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        if not USERS:
            self.headers = {}
            return
        email, password = random.choice(USERS)
        profile = self.login(email, password)
        if profile:
            self.client.post(
                "/api/v1/wallet/credits",
                json={"user_id": profile["id"], "amount": 100000},
                headers={"X-API-Key": API_KEY},
            )

    @tag("concurrency")
    @task
    def reserve_same_days(self):
        """All users fight for the same guest places."""
        if not self.headers:
            return

        with self.client.post(
            "/api/v1/tracks/reserve",
            json={
                "id": TRACK_ID,
                "date_from": RACE_FROM.isoformat(),
                "date_to": RACE_TO.isoformat(),
                "num_of_guests": 1,
            },
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: full, or lost the version race
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(AuthenticatedUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the API, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        if USERS:
            self.login(*random.choice(USERS))
        else:
            self.headers = {}

    @tag("throughput", "read")
    @task(10)
    def list_tracks_cached(self):
        page = random.randint(1, 5)
        self.client.get(
            f"/api/v1/tracks/?page={page}&per_page=20",
            headers=self.headers,
            name="/api/v1/tracks/ [cached]",
        )

    @tag("throughput", "read")
    @task(5)
    def list_available_hotels(self):
        date_from = date.today() + timedelta(days=random.randint(2, 60))
        self.client.get(
            f"/api/v1/hotels/?date_from={date_from}&date_to={date_from + timedelta(days=3)}&guests=2",
            headers=self.headers,
            name="/api/v1/hotels/ [availability]",
        )

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(AuthenticatedUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        email = random_email()
        self.client.post("/api/v1/auth/register", json={
            "email": email,
            "username": random_username(),
            "name": "Load Test",
            "password": "test12345",
        })
        self.login(email, "test12345")

    def _reserve(self, payload, expected, **kwargs):
        with self.client.post(
            "/api/v1/tracks/reserve",
            json=payload,
            catch_response=True,
            **kwargs,
        ) as resp:
            if resp.status_code in expected:
                resp.success()
            else:
                resp.failure(f"Expected {expected}, got {resp.status_code}")

    @tag("edge")
    @task
    def reversed_dates(self):
        self._reserve(
            {"id": TRACK_ID, "date_from": RACE_TO.isoformat(), "date_to": RACE_FROM.isoformat(), "num_of_guests": 1},
            [400],
            headers=self.headers,
        )

    @tag("edge")
    @task
    def beyond_window(self):
        far = date.today() + timedelta(days=200)
        self._reserve(
            {"id": TRACK_ID, "date_from": far.isoformat(), "date_to": (far + timedelta(days=1)).isoformat(), "num_of_guests": 1},
            [400],
            headers=self.headers,
        )

    @tag("edge")
    @task
    def unverified_account(self):
        """Fresh registrations are not validated yet."""
        self._reserve(
            {"id": TRACK_ID, "date_from": RACE_FROM.isoformat(), "date_to": RACE_TO.isoformat(), "num_of_guests": 1},
            [401],
            headers=self.headers,
        )

    @tag("edge")
    @task
    def zero_guests(self):
        self._reserve(
            {"id": TRACK_ID, "date_from": RACE_FROM.isoformat(), "date_to": RACE_TO.isoformat(), "num_of_guests": 0},
            [422],
            headers=self.headers,
        )

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/tracks/reserve",
            data="not json at all",
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_auth(self):
        self._reserve(
            {"id": TRACK_ID, "date_from": RACE_FROM.isoformat(), "date_to": RACE_TO.isoformat(), "num_of_guests": 1},
            [401],
        )
