"""
Data Gateway Tests

Validates Read -> Map -> Write with in-memory sources and sinks.
"""

from types import SimpleNamespace

import paho.mqtt.client as mqtt

import data_gateway.adapters as adapters
from data_gateway.adapters import MQTTSink, RapidScadaFileSink, flatten_machines
from data_gateway.core import DataEngine, ISink, ISource, machine_tag

MACHINES = [
    {"id": "M001", "status": "Running", "production_count": 120, "cycle_time_seconds": 31.2,
     "timestamp": "2024-01-01T08:00:00Z"},
    {"id": "M002", "status": "Alarm", "production_count": 40, "cycle_time_seconds": 0.0,
     "timestamp": "2024-01-01T08:00:01Z"},
]


class StaticSource(ISource):
    def __init__(self, data):
        self.data = data

    def read(self):
        return self.data


class MemorySink(ISink):
    def __init__(self):
        self.writes = []

    def write(self, data):
        self.writes.append(data)


class FakeMqttClient:
    def __init__(self):
        self.published = []

    def publish(self, topic, payload, qos=0, retain=False):
        self.published.append((topic, payload))
        return SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS)


def test_flatten_machines():
    tags = flatten_machines(MACHINES)
    assert tags["M001.status"] == "Running"
    assert tags["M001.production_count"] == 120
    assert tags["M002.cycle_time_seconds"] == 0.0
    assert len(tags) == 8


def test_flattened_tags_use_machine_tag_names():
    tags = flatten_machines(MACHINES)
    assert set(tags) == {machine_tag(m["id"], f) for m in MACHINES
                         for f in ("status", "production_count", "cycle_time_seconds", "timestamp")}


def test_adapters_export_only_wired_sinks():
    assert sorted(adapters.__all__) == ["MQTTSink", "RapidScadaFileSink", "RestSourceAdapter", "flatten_machines"]
    assert not hasattr(adapters, "PrintSink")


def test_step_without_mapping_forwards_tags():
    sink = MemorySink()
    engine = DataEngine(StaticSource(flatten_machines(MACHINES)), sink)

    assert engine.step() == 8
    assert sink.writes[0]["M002.status"] == "Alarm"


def test_step_with_mapping_drops_unmapped_tags():
    sink = MemorySink()
    mapping = {"M001.production_count": 101, "M002.production_count": 201}
    engine = DataEngine(StaticSource(flatten_machines(MACHINES)), sink, mapping)

    engine.step()

    assert sink.writes == [{101: 120, 201: 40}]


def test_empty_read_writes_nothing():
    sink = MemorySink()
    engine = DataEngine(StaticSource({}), sink)
    assert engine.step() == 0
    assert sink.writes == []


def test_run_stops_after_max_steps():
    sink = MemorySink()
    engine = DataEngine(StaticSource({"M001.status": "Stopped"}), sink)
    engine.run(interval=0.0, max_steps=3)
    assert len(sink.writes) == 3
    assert engine.running is False


def test_file_sink_writes_channel_lines(tmp_path):
    path = tmp_path / "out" / "scada.txt"
    sink = RapidScadaFileSink(str(path))
    sink.connect()

    sink.write({101: 120, 102: True, 103: "Running"})

    assert path.read_text().splitlines() == ["101;120", "102;1", "103;Running"]
    assert not (tmp_path / "out" / "scada.txt.tmp").exists()


def test_mqtt_sink_publishes_json_payload():
    client = FakeMqttClient()
    sink = MQTTSink("localhost", 1883, "cnc-tracker/machines", client=client)

    sink.write({"M001.status": "Running"})
    sink.write({})

    assert client.published == [("cnc-tracker/machines", '{"M001.status": "Running"}')]
