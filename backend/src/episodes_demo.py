"""Demo client: an episodes page wrapped in containment boundaries."""
import asyncio
import logging

from containment import FallbackProps, SessionContext, TelemetryHandle, component, init

logger = logging.getLogger(__name__)

EPISODES = [
    {"id": "1", "name": "Pilot", "air_date": "December 2, 2013", "episode": "S01E01"},
    {"id": "2", "name": "Lawnmower Dog", "air_date": "December 9, 2013", "episode": "S01E02"},
    {"id": "3", "name": "Anatomy Park", "air_date": "December 16, 2013", "episode": "S01E03"},
]


class ErrorProneComponent:
    """Renders a button that makes the next render raise."""

    def __init__(self):
        self.should_throw = False

    def click(self):
        self.should_throw = True

    @component("ErrorProneComponent")
    def render(self) -> str:
        if self.should_throw:
            raise RuntimeError("This is a test error!")
        return "Error Testing Component [Click to Trigger Test Error]"


@component("EpisodeCard")
def render_episode(episode: dict) -> str:
    return f"{episode['episode']}  {episode['name']} ({episode['air_date']})"


@component("EpisodesPage")
def render_episodes(episodes: list[dict]) -> str:
    return "\n".join(render_episode(episode) for episode in episodes)


def render_fallback(props: FallbackProps) -> str:
    return f"Oops, there is an error! ({props.fault}) [Try again?]"


async def run_demo(telemetry: TelemetryHandle) -> None:
    page = telemetry.boundary("EpisodesPage", fallback=render_fallback)
    widget = ErrorProneComponent()
    widget_boundary = telemetry.boundary(
        "ErrorProneComponent",
        fallback=render_fallback,
        on_reset=lambda: setattr(widget, "should_throw", False)
    )

    print(page.render(lambda: render_episodes(EPISODES)))
    print(widget_boundary.render(widget.render))

    widget.click()
    print(widget_boundary.render(widget.render))
    print(f"Boundary state: {widget_boundary.current_state().status.value}")

    # The rest of the page keeps rendering while the widget is degraded.
    print(page.render(lambda: render_episodes(EPISODES[:1])))

    widget_boundary.reset()
    print(widget_boundary.render(widget.render))
    print(f"Boundary state: {widget_boundary.current_state().status.value}")

    await telemetry.delivery.tick()
    logger.info(f"Delivery statistics: {telemetry.delivery.get_statistics()}")


async def main() -> None:
    session = SessionContext.from_env()
    async with await init(session) as telemetry:
        await run_demo(telemetry)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
