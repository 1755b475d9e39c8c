from bluos_locator.config_loader import VerificationSettings
from bluos_locator.discovery.health import check_player_health

SETTINGS = VerificationSettings(
    reachability_timeout_seconds=3,
    request_timeout_seconds=3,
    retry_attempts=2,
    retry_delay_seconds=0,
)


async def test_online_player_reports_state(player_factory):
    player = await player_factory({"/Status": 200})

    health = await check_player_health(player.url, SETTINGS)

    assert health.status == "online"
    assert health.state == "play"
    assert health.service == "Tidal"


async def test_degraded_when_status_fails_but_host_answers(player_factory):
    player = await player_factory({"/Status": 503, "/Volume": 200})

    health = await check_player_health(player.url, SETTINGS)

    assert health.status == "degraded"
    assert "503" in health.detail


async def test_degraded_on_unparseable_status(player_factory):
    player = await player_factory({"/Status": 200}, body="<status><state>play")

    health = await check_player_health(player.url, SETTINGS)

    assert health.status == "degraded"
    assert "XML parsing error" in health.detail


async def test_unreachable_host(refused_url):
    health = await check_player_health(refused_url, SETTINGS)

    assert health.status == "unreachable"
    assert health.state is None
