from .interfaces import ISource, ISink, IAdapter, Tags, TagMapping, Channels, machine_tag
from .engine import DataEngine

__all__ = ['ISource', 'ISink', 'IAdapter', 'Tags', 'TagMapping', 'Channels', 'machine_tag', 'DataEngine']
