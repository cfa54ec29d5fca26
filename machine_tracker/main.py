import logging
import threading
import time
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from .api import router
from .settings import TrackerSettings, load_config
from .simulation import SimulationEngine, build_engine

logging.basicConfig(level=logging.INFO, format='[TRACKER] %(asctime)s | %(message)s', datefmt='%H:%M:%S')
logger = logging.getLogger("TrackerAPI")


class AutoSimulator:
    """
    Background loop advancing every known machine at a fixed interval.
    Runs in a daemon thread; stop() joins it.
    """

    def __init__(self, engine: SimulationEngine, interval: float):
        self.engine = engine
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="auto-simulator", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)

    def _loop(self):
        logger.info(">>> Auto-simulation Started")
        while not self._stop.is_set():
            start_time = time.time()
            try:
                self.engine.advance_all()
            except Exception:
                logger.exception("Auto-simulation step failed")
            elapsed = time.time() - start_time
            self._stop.wait(max(0, self.interval - elapsed))
        logger.info(">>> Auto-simulation Stopped")


def create_app(settings: Optional[TrackerSettings] = None,
               engine: Optional[SimulationEngine] = None) -> FastAPI:
    """
    Build the API app. One engine per app: baselines live as long as it does.
    """
    settings = settings or load_config()
    engine = engine or build_engine(settings)

    app = FastAPI(title="CNC Machine Tracker API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.auto_simulator = AutoSimulator(engine, settings.auto_simulate_interval_sec)

    @app.on_event("startup")
    def startup_event():
        for machine_id in settings.seed_machines:
            engine.register(machine_id)
        if settings.seed_machines:
            logger.info(f"Registered seed machines: {', '.join(settings.seed_machines)}")
        if settings.auto_simulate:
            app.state.auto_simulator.start()

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.auto_simulator.stop()

    @app.get("/")
    def read_root():
        return {"status": "ok", "service": "CNC Machine Tracker"}

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    config = app.state.settings
    uvicorn.run("machine_tracker.main:app", host=config.api_host, port=config.api_port)
