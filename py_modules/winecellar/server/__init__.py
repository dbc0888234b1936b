# Frontend transport
from .peers import PeerMap
from .ws_server import WineCellarServer

__all__ = ['PeerMap', 'WineCellarServer']
