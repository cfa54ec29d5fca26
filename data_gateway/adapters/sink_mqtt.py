import json
import logging
import paho.mqtt.client as mqtt
from data_gateway.core.interfaces import Channels, ISink, IAdapter

logger = logging.getLogger("mqtt_sink")

class MQTTSink(ISink, IAdapter):
    """
    Publishes machine tags to an MQTT Broker as one flat JSON payload per poll.
    """
    def __init__(self, broker: str, port: int, topic: str, client=None):
        self.broker = broker
        self.port = port
        self.topic = topic
        self.client = client or mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
    
    def connect(self):
        try:
            logger.info(f"Connecting to MQTT Broker {self.broker}:{self.port}...")
            self.client.connect(self.broker, self.port, 60)
            self.client.loop_start()
            logger.info("MQTT Connected")
        except OSError as e:
            logger.error(f"MQTT Connection Failed: {e}")

    def disconnect(self):
        self.client.loop_stop()
        self.client.disconnect()

    def write(self, data: Channels) -> None:
        if not data:
            return

        payload = json.dumps(data, default=str)
        logger.debug(f"Publishing {len(data)} tags to MQTT topic {self.topic}")
        result = self.client.publish(self.topic, payload, qos=0, retain=False)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"MQTT Publish Failed: rc={result.rc}")
