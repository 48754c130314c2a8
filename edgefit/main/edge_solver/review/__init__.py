from .session import Action, ReviewSession
from .preview import PreviewRenderer, encode_png

__all__ = ['Action', 'ReviewSession', 'PreviewRenderer', 'encode_png']
