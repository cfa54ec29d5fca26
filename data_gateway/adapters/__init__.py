from .source_rest import RestSourceAdapter, flatten_machines
from .sink_mqtt import MQTTSink
from .sink_file import RapidScadaFileSink

__all__ = ['RestSourceAdapter', 'flatten_machines', 'MQTTSink', 'RapidScadaFileSink']
