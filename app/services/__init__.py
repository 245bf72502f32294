"""
Services package for the Playlist Catalog Service

This package contains all business logic and service layer components.
"""
from app.services.catalog_query_service import (
    PlaylistNotFoundError,
    PlaylistServiceError,
    get_owned_playlist,
    get_series,
    list_channels,
    list_movies,
    list_playlists,
    list_series,
    playlist_response,
    set_favorite,
)
from app.services.m3u_parser_service import parse_document, tokenize_document
from app.services.playlist_import_service import (
    PlaylistRefreshError,
    PlaylistSourceError,
    import_playlist,
    refresh_all_playlists,
    refresh_playlist,
    remove_playlist,
)
from app.services.scheduler_service import playlist_scheduler

__all__ = [
    'PlaylistNotFoundError',
    'PlaylistRefreshError',
    'PlaylistServiceError',
    'PlaylistSourceError',
    'get_owned_playlist',
    'get_series',
    'import_playlist',
    'list_channels',
    'list_movies',
    'list_playlists',
    'list_series',
    'parse_document',
    'playlist_response',
    'playlist_scheduler',
    'refresh_all_playlists',
    'refresh_playlist',
    'remove_playlist',
    'set_favorite',
    'tokenize_document',
]
