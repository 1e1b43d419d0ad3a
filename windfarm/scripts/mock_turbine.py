#!/usr/bin/env python3
"""
Wind Farm Mock Turbine

Streams drifting telemetry for one turbine to the ingestion endpoint.

Usage:
    python -m windfarm.scripts.mock_turbine --turbine wt-01
    python -m windfarm.scripts.mock_turbine --turbine wt-02 --overheat
"""

import argparse
import asyncio
import logging
import random
from datetime import datetime, timezone

import httpx

logger = logging.getLogger("mock_turbine")


class MockTurbine:
    def __init__(self, turbine_id, api_url, farm_id="farm-01", overheat=False):
        self.turbine_id = turbine_id
        self.api_url = api_url
        self.farm_id = farm_id
        self.overheat = overheat
        self.client = httpx.AsyncClient(timeout=5.0)
        self.running = True
        self.wind = 11.0
        self.generator_temp = 55.0
        self.gearbox_temp = 50.0
        self.vibration = 0.8
        self.pitch = 4.0

    def step(self):
        """Advance the simulated readings by one report."""
        self.wind = max(0.0, self.wind + random.uniform(-0.6, 0.6))
        drift = 1.5 if self.overheat else 0.0
        self.generator_temp += random.uniform(-0.3, 0.3) + drift
        self.gearbox_temp += random.uniform(-0.3, 0.3)
        self.vibration = max(0.0, self.vibration + random.uniform(-0.05, 0.05))

    def payload(self):
        rotor = min(22.0, self.wind * 1.4) if self.running else 0.0
        return {
            "turbineId": self.turbine_id,
            "turbineName": f"Turbine {self.turbine_id}",
            "farmId": self.farm_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "windSpeed": round(self.wind, 2),
            "windDirection": round(random.uniform(200, 240), 1),
            "ambientTemperature": 9.5,
            "rotorSpeed": round(rotor, 2),
            "powerOutput": round(rotor * 95.0, 1),
            "nacelleDirection": 220.0,
            "bladePitch": self.pitch,
            "generatorTemp": round(self.generator_temp, 2),
            "gearboxTemp": round(self.gearbox_temp, 2),
            "vibration": round(self.vibration, 3),
            "status": "running" if self.running else "stopped",
        }

    async def push_telemetry(self):
        try:
            r = await self.client.post(f"{self.api_url}/telemetry/", json=self.payload())
            r.raise_for_status()
            body = r.json()
            if body.get("alerts"):
                logger.warning("%s raised %d alert(s)", self.turbine_id, body["alerts"])
        except httpx.HTTPError as e:
            logger.error("Failed to push telemetry: %s", e)

    async def run(self, interval):
        logger.info("Mock turbine %s -> %s every %ss", self.turbine_id, self.api_url, interval)
        try:
            while True:
                self.step()
                await self.push_telemetry()
                await asyncio.sleep(interval)
        finally:
            await self.client.aclose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Wind Farm Mock Turbine")
    parser.add_argument("--turbine", default="wt-01", help="Turbine ID to simulate")
    parser.add_argument("--api", default="http://localhost:8000/api/v1", help="API URL")
    parser.add_argument("--farm", default="farm-01", help="Farm ID")
    parser.add_argument("--interval", type=float, default=10.0, help="Seconds between reports")
    parser.add_argument("--overheat", action="store_true", help="Let the generator temperature climb")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    turbine = MockTurbine(args.turbine, args.api, args.farm, args.overheat)
    try:
        asyncio.run(turbine.run(args.interval))
    except KeyboardInterrupt:
        print("\nShutdown")
