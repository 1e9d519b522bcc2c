import asyncio

from models import ItineraryFrame, MetricsFrame, TokenFrame, TripParams
from services.ai_stream import build_prompt
from services.fallback_generator import fallback_fragments
from services.metrics import estimate_usage
from services.orchestrator import GenerationOrchestrator
from services.stream_dispatcher import CancellationToken

AI_CHUNKS = [
    "Lisbon awaits!\n\n**Day 1: Alfama",
    "**\n🌅 Morning: Miradouro walk\n🍽️ Lunch: grilled sardines\n\n",
    "**Day 2: Belém**\n• Jerónimos Monastery\n• Pastéis de Belém\n",
]


def _kinds(frames):
    return [type(f).__name__ for f in frames]


def test_ai_path_streams_chunks_then_parsed_summary(collect, scripted_streamer):
    streamer = scripted_streamer(AI_CHUNKS)
    params = TripParams(destination="Lisbon", duration="2", interests=["food", "history"])

    frames = collect(GenerationOrchestrator(streamer, fallback_delay_s=0).generate(params))

    assert [f.token for f in frames[:-2]] == AI_CHUNKS
    summary, metrics = frames[-2], frames[-1]
    assert isinstance(summary, ItineraryFrame) and isinstance(metrics, MetricsFrame)

    full_text = "".join(AI_CHUNKS)
    itinerary = summary.itinerary
    assert itinerary.full_text == full_text
    assert itinerary.description == "AI-generated trip to Lisbon"
    assert itinerary.interests == ["food", "history"]
    assert [(d.day, d.title) for d in itinerary.days] == [(1, "Alfama"), (2, "Belém")]
    assert itinerary.days[0].activities == ["Morning: Miradouro walk", "Lunch: grilled sardines"]

    prompt = streamer.prompts[0]
    assert prompt == build_prompt(params)
    assert "Lisbon" in prompt and "food, history" in prompt and "2 days" in prompt
    assert metrics.metrics == estimate_usage(prompt, full_text)


def test_prompt_defaults_when_no_interests():
    prompt = build_prompt(TripParams(destination="Cairo"))

    assert "Duration: 3 days" in prompt
    assert "Budget: $1000 per person" in prompt
    assert "Interests: General sightseeing, culture, food" in prompt


def test_ai_failure_midstream_falls_back_after_sent_tokens(collect, scripted_streamer):
    streamer = scripted_streamer(AI_CHUNKS, fail_after=1)
    params = TripParams(destination="Lisbon")

    frames = collect(GenerationOrchestrator(streamer, fallback_delay_s=0).generate(params))

    tokens = [f.token for f in frames if isinstance(f, TokenFrame)]
    assert tokens == [AI_CHUNKS[0]] + fallback_fragments(params)
    assert _kinds(frames[-2:]) == ["ItineraryFrame", "MetricsFrame"]
    assert frames[-2].itinerary.description == "A wonderful trip to Lisbon"
    assert frames[-2].itinerary.full_text is None
    assert frames[-1].metrics.total_tokens == 350
    assert streamer.closed


def test_ai_failure_before_first_chunk(collect, scripted_streamer):
    frames = collect(GenerationOrchestrator(scripted_streamer([], fail_after=0), fallback_delay_s=0)
                     .generate(TripParams(destination="Quito")))

    assert frames[0].token.startswith("🏝️ **Welcome to your Quito adventure!**")
    assert sum(isinstance(f, ItineraryFrame) for f in frames) == 1
    assert sum(isinstance(f, MetricsFrame) for f in frames) == 1


def test_no_streamer_uses_fallback(collect):
    params = TripParams(destination="Paris", duration="2", interests=["food"])

    frames = collect(GenerationOrchestrator(None, fallback_delay_s=0).generate(params))

    assert [f.token for f in frames[:-2]] == fallback_fragments(params)
    assert frames[-2].itinerary.destination == "Paris"
    assert frames[-2].itinerary.duration == "2"
    assert len(frames[-2].itinerary.days) == 3
    assert frames[-1].metrics.prompt_tokens == 50


def test_fallback_output_identical_across_runs(collect):
    orchestrator = GenerationOrchestrator(None, fallback_delay_s=0)
    params = TripParams(destination="Paris", interests=["food"])

    first = collect(orchestrator.generate(params))
    second = collect(orchestrator.generate(params))

    assert [f.token for f in first[:-2]] == [f.token for f in second[:-2]]
    assert first[-2].itinerary.days == second[-2].itinerary.days
    assert first[-1] == second[-1]


def test_fallback_pacing_sleeps_between_fragments(collect, monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("services.orchestrator.asyncio.sleep", fake_sleep)
    params = TripParams(destination="Paris")

    collect(GenerationOrchestrator(None, fallback_delay_s=0.2).generate(params))

    assert delays == [0.2] * (len(fallback_fragments(params)) - 1)


def test_cancel_stops_ai_stream_without_summary(scripted_streamer):
    streamer = scripted_streamer(AI_CHUNKS)
    token = CancellationToken()

    async def run():
        seen = []
        async for frame in GenerationOrchestrator(streamer, fallback_delay_s=0).generate(
            TripParams(destination="Lisbon"), token
        ):
            seen.append(frame)
            token.cancel()
        return seen

    frames = asyncio.run(run())

    assert _kinds(frames) == ["TokenFrame"]
    assert streamer.closed


def test_cancel_stops_fallback_loop():
    token = CancellationToken()

    async def run():
        seen = []
        async for frame in GenerationOrchestrator(None, fallback_delay_s=0).generate(
            TripParams(destination="Paris"), token
        ):
            seen.append(frame)
            if len(seen) == 3:
                token.cancel()
        return seen

    frames = asyncio.run(run())

    assert len(frames) == 3
    assert all(isinstance(f, TokenFrame) for f in frames)


def test_aclose_closes_streamer_client():
    class ClosableStreamer:
        closed = False

        async def stream(self, prompt):
            yield "unused"

        async def aclose(self):
            self.closed = True

    streamer = ClosableStreamer()

    asyncio.run(GenerationOrchestrator(streamer).aclose())
    asyncio.run(GenerationOrchestrator(None).aclose())

    assert streamer.closed
