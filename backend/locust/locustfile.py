"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags read         # Test availability reads
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from locust import HttpUser, task, between, tag, events

# One showing, 10 seats: every concurrency user fights over these
HOT_SHOWING = {"movie_name": "Load Test Premiere", "date": "2030-01-01", "time": "20:00"}
HOT_SEATS = [f"A{i}" for i in range(1, 11)]

MOVIES = ["Inception", "Tenet", "Dune", "Arrival", "Heat"]
TIMES = ["12:00", "15:00", "18:00", "21:00"]
BOOKING_IDS = []


def random_name():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Hot showing: {HOT_SHOWING} with seats {HOT_SEATS[0]}..{HOT_SEATS[-1]}")
    print("=" * 60)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("\nAfter test, verify no seat is held twice:")
    print(f"  GET /booked-seats?movie={HOT_SHOWING['movie_name']}"
          f"&date={HOT_SHOWING['date']}&time={HOT_SHOWING['time']}")
    print("  SELECT show_title, seat, COUNT(*) FROM seat_claims GROUP BY 1, 2 HAVING COUNT(*) > 1;")


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    Every request asks for 1-3 random seats of the same showing, so most
    overlap. Expect only 201 or 409, and at most 10 seats held afterwards.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.name = random_name()

    @tag("concurrency")
    @task
    def book_hot_seats(self):
        seats = random.sample(HOT_SEATS, k=random.randint(1, 3))
        with self.client.post("/bookings",
            json={**HOT_SHOWING, "name": self.name, "seats": seats},
            name="/bookings [hot showing]",
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: seats taken
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class AvailabilityUser(HttpUser):
    """
    TEST 2: Availability reads while bookings land

    Run: locust -f locustfile.py --tags read -u 100 -r 20 --run-time 60s

    Compare P95/P99 of /booked-seats with and without the concurrency users.
    """
    wait_time = between(0.1, 0.5)

    @tag("read")
    @task(10)
    def booked_seats(self):
        self.client.get("/booked-seats",
            params={"movie": HOT_SHOWING["movie_name"], "date": HOT_SHOWING["date"], "time": HOT_SHOWING["time"]},
            name="/booked-seats")

    @tag("read")
    @task(3)
    def list_active_bookings(self):
        self.client.get("/bookings",
            params={"movie_name": random.choice(MOVIES), "active_only": "true"},
            name="/bookings?movie_name")

    @tag("read")
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

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def empty_seats(self):
        with self.client.post("/bookings",
            json={**HOT_SHOWING, "seats": " , "},
            name="/bookings [empty seats]",
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def missing_title(self):
        with self.client.post("/bookings",
            json={"date": "2030-01-01", "time": "20:00", "seats": ["A1"]},
            name="/bookings [no title]",
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/bookings",
            data="not json at all",
            headers={"Content-Type": "application/json"},
            name="/bookings [garbage]",
            catch_response=True
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def cancel_unknown_booking(self):
        with self.client.post("/cancelled-bookings",
            json={"booking_id": 999999, "reason": "load test"},
            catch_response=True
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def booked_seats_missing_params(self):
        with self.client.get("/booked-seats",
            params={"movie": "Inception"},
            name="/booked-seats [missing params]",
            catch_response=True
        ) as resp:
            self._expect(resp, [400])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Mostly checking availability, some bookings, occasional cancellations.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.name = random_name()

    def _showing(self):
        return {"movie_name": random.choice(MOVIES), "date": "2030-02-01", "time": random.choice(TIMES)}

    @task(50)
    def check_availability(self):
        showing = self._showing()
        self.client.get("/booked-seats",
            params={"movie": showing["movie_name"], "date": showing["date"], "time": showing["time"]},
            name="/booked-seats")

    @task(15)
    def book(self):
        seats = [f"{random.choice('ABCDEFGH')}{random.randint(1, 20)}" for _ in range(random.randint(1, 4))]
        resp = self.client.post("/bookings",
            json={**self._showing(), "name": self.name, "seats": seats})
        if resp.status_code == 201:
            BOOKING_IDS.append(resp.json()["id"])

    @task(5)
    def my_bookings(self):
        self.client.get("/bookings", params={"name": self.name}, name="/bookings?name")

    @task(2)
    def cancel(self):
        if BOOKING_IDS:
            booking_id = BOOKING_IDS.pop(random.randrange(len(BOOKING_IDS)))
            self.client.post("/cancelled-bookings",
                json={"booking_id": booking_id, "reason": "plans changed"})
