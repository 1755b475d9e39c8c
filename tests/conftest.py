"""
Shared fixtures: loopback BluOS stand-ins and scripted mDNS queriers
"""

import asyncio
import socket

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

STATUS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<status etag="4e266c9fbfba6d13d1a4d6ff4bd2e1e6">
  <album>Kind of Blue</album>
  <artist>Miles Davis</artist>
  <name>So What</name>
  <service>Tidal</service>
  <serviceName>TIDAL</serviceName>
  <state>play</state>
  <title1>So What</title1>
  <volume>32</volume>
</status>
"""


class FakePlayer:
    """Loopback HTTP server answering each path with a configured status"""

    def __init__(self, responses=None, default_status=404, body=STATUS_XML):
        # path -> status, or a list of statuses consumed one per request
        self.responses = dict(responses or {})
        self.default_status = default_status
        self.body = body
        self.hits = []
        self.server = None

    async def handle(self, request):
        self.hits.append(request.path)
        status = self.responses.get(request.path, self.default_status)
        if isinstance(status, list):
            status = status.pop(0) if len(status) > 1 else status[0]
        text = self.body if status == 200 else "error"
        return web.Response(status=status, text=text, content_type="text/xml")

    @property
    def url(self):
        return f"http://127.0.0.1:{self.server.port}"


@pytest.fixture
async def player_factory():
    players = []

    async def make(responses=None, default_status=404, body=STATUS_XML):
        player = FakePlayer(responses, default_status, body)
        app = web.Application()
        app.router.add_route("GET", "/{tail:.*}", player.handle)
        player.server = TestServer(app, host="127.0.0.1")
        await player.server.start_server()
        players.append(player)
        return player

    yield make

    for player in players:
        await player.server.close()


def _closed_port_url():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}"


@pytest.fixture
def refused_url():
    """Base URL of a loopback port nothing listens on"""
    return _closed_port_url()


class ScriptedQuerier:
    """
    Stand-in for ZeroconfQuerier
    script maps service type -> exception to raise, or list of (delay, record-or-None) steps
    """

    def __init__(self, script, log):
        self.script = script
        self.log = log

    async def __aenter__(self):
        self.log.opened += 1
        return self

    async def __aexit__(self, *exc_info):
        self.log.closed += 1

    async def query(self, service_type, domain, timeout, sink):
        self.log.calls.append((service_type, domain, timeout))
        steps = self.script.get(service_type, [])
        if isinstance(steps, Exception):
            raise steps
        for delay, reply in steps:
            await asyncio.sleep(delay)
            if reply is not None:
                await sink.put(reply)


class QueryLog:
    def __init__(self):
        self.calls = []
        self.opened = 0
        self.closed = 0


@pytest.fixture
def scripted_querier():
    """Returns (factory_builder, log); factory_builder(script) gives a querier_factory"""
    log = QueryLog()

    def build(script):
        return lambda: ScriptedQuerier(script, log)

    return build, log
