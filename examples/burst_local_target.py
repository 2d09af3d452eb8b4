"""
Quick sanity run: four ON/OFF workers against a throwaway local target.
Run: uv run examples/burst_local_target.py
"""
import asyncio
import os

from aiohttp import web

from squall import RunConfig, Orchestrator, render_summary, render_timeline


async def ok(request):
    return web.Response(text="OK")


async def main():
    app = web.Application()
    app.router.add_get("/", ok)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 8089)
    await site.start()

    config = RunConfig(
        url="http://127.0.0.1:8089/",
        workers=4,
        rate_on=0.3,
        rate_off=0.8,
        duration_s=float(os.getenv("SQUALL_DURATION", "5")),
        request_timeout_s=10.0,
    )
    orchestrator = Orchestrator(config, use_progress_bar=True)
    try:
        stats = await orchestrator.run()
    finally:
        await runner.cleanup()

    print(render_summary(stats))
    print()
    print(render_timeline(orchestrator.records, width=100))


if __name__ == "__main__":
    asyncio.run(main())
