import asyncio
import copy
from urllib.parse import parse_qs

import httpx
import pytest

from src.enrollment.api import EnrollmentAPI
from src.enrollment.config import ClientConfig
from src.enrollment.controller import ActionController


def _activities():
    return {
        "Chess Club": {
            "description": "Learn strategies and compete in chess tournaments",
            "schedule": "Fridays, 3:30 PM - 5:00 PM",
            "max_participants": 2,
            "participants": ["a@x.com"],
        },
        "Programming Class": {
            "description": "Learn programming fundamentals",
            "schedule": "Tuesdays and Thursdays, 3:30 PM - 4:30 PM",
            "max_participants": 20,
            "participants": ["emma@x.com", "sophia@x.com"],
        },
    }


class StubServer:
    """In-memory enrollment API that records every request it receives.

    GET /activities answers with the state at the moment the request arrives.
    hold_activities() makes the next roster responses wait until released,
    so tests can choose the order in which they are delivered.
    """

    def __init__(self):
        self.activities = _activities()
        self.users = {"alice": "secret"}
        self.username = None
        self.requests = []
        self.fail_paths = set()
        self.raw_bodies = {}
        self._holds = []
        self.pending = []

    def hits(self, method, path=None):
        return [
            r
            for r in self.requests
            if r.method == method and (path is None or r.url.path == path)
        ]

    def mutation_hits(self):
        return [
            r
            for r in self.requests
            if r.url.path.endswith("/signup") or r.url.path.endswith("/unregister")
        ]

    def hold_activities(self, count=1):
        self._holds.extend(asyncio.Event() for _ in range(count))

    async def wait_for_pending(self, count):
        while len(self.pending) < count:
            await asyncio.sleep(0)

    def release(self, index):
        self.pending[index].set()

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.fail_paths:
            raise httpx.ConnectError("connection refused", request=request)
        if path in self.raw_bodies:
            status, text = self.raw_bodies[path]
            return httpx.Response(status, text=text)

        if path == "/activities" and request.method == "GET":
            body = copy.deepcopy(self.activities)
            if self._holds:
                gate = self._holds.pop(0)
                self.pending.append(gate)
                await gate.wait()
            return httpx.Response(200, json=body)

        if path == "/me":
            if self.username is None:
                return httpx.Response(401, json={"detail": "Not authenticated"})
            return httpx.Response(200, json={"username": self.username})

        if path in ("/login", "/register"):
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            return self._auth(path, form.get("username", ""), form.get("password", ""))

        if path == "/logout":
            self.username = None
            return httpx.Response(200, json={"message": "Logged out"})

        if path.startswith("/activities/"):
            _, _, name, action = path.split("/", 3)
            return self._mutate(request, name, action)

        return httpx.Response(404, json={"detail": "Not Found"})

    def _auth(self, path, username, password):
        if path == "/register":
            if username in self.users:
                return httpx.Response(400, json={"detail": "Username already exists"})
            self.users[username] = password
            return httpx.Response(200, json={"message": "Registration successful"})
        if self.users.get(username) != password:
            return httpx.Response(
                401, json={"detail": "Incorrect username or password"}
            )
        self.username = username
        return httpx.Response(200, json={"message": f"Welcome, {username}!"})

    def _mutate(self, request, name, action):
        if self.username is None:
            return httpx.Response(401, json={"detail": "Not authenticated"})
        activity = self.activities.get(name)
        if activity is None:
            return httpx.Response(404, json={"detail": "Activity not found"})
        email = request.url.params.get("email")
        participants = activity["participants"]
        if action == "signup" and request.method == "POST":
            if email in participants:
                return httpx.Response(
                    400, json={"detail": "Student is already signed up"}
                )
            participants.append(email)
            return httpx.Response(
                200, json={"message": f"Signed up {email} for {name}"}
            )
        if action == "unregister" and request.method == "DELETE":
            if email not in participants:
                return httpx.Response(
                    400, json={"detail": "Student is not signed up for this activity"}
                )
            participants.remove(email)
            return httpx.Response(
                200, json={"message": f"Unregistered {email} from {name}"}
            )
        return httpx.Response(405, json={"detail": "Method Not Allowed"})


class FakeTimer:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Deterministic stand-in for loop.call_later."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds):
        target = self.now + seconds
        for timer in sorted(self.timers, key=lambda t: t.when):
            if timer.when <= target and not timer.cancelled:
                self.now = timer.when
                timer.cancelled = True
                timer.callback()
        self.now = target


@pytest.fixture
def server():
    return StubServer()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
async def api(server):
    client = EnrollmentAPI("http://test", transport=httpx.MockTransport(server.handler))
    yield client
    await client.aclose()


@pytest.fixture
def make_controller(api, scheduler):
    def _make(**overrides):
        config = ClientConfig(_env_file=None, **overrides)
        return ActionController.from_config(api, config, call_later=scheduler)

    return _make


@pytest.fixture
def controller(make_controller):
    return make_controller()
