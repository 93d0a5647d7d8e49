from .online_media import (
    OnlineMediaHelper,
    OnlineMediaHelperRegistry,
    YouTubeHelper,
    VimeoHelper,
)

__all__ = ['OnlineMediaHelper', 'OnlineMediaHelperRegistry', 'YouTubeHelper', 'VimeoHelper']
