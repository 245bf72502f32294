"""
SQLAlchemy ORM Models for the Playlist Catalog Service

This module defines the database models for playlists and the channels,
movies, series and episodes parsed from them.
"""
from datetime import datetime, timezone
from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class Playlist(Base):
    """Playlist document and its provenance"""
    __tablename__ = "playlists"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    url: Mapped[str | None] = mapped_column(String, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    last_refreshed: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Playlist(id={self.id}, owner_id={self.owner_id}, name={self.name})>"


class Channel(Base):
    """Live channel parsed from a playlist"""
    __tablename__ = "channels"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    playlist_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("playlists.id", ondelete="CASCADE"),
        nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    group: Mapped[str] = mapped_column(String, nullable=False)
    stream_url: Mapped[str] = mapped_column(String, nullable=False)
    logo_url: Mapped[str | None] = mapped_column(String, nullable=True)
    favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attributes: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_channels_playlist_group", "playlist_id", "group"),
    )

    def __repr__(self) -> str:
        return f"<Channel(id={self.id}, name={self.name}, group={self.group})>"


class Movie(Base):
    """Movie parsed from a playlist"""
    __tablename__ = "movies"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    playlist_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("playlists.id", ondelete="CASCADE"),
        nullable=False
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    genre: Mapped[str] = mapped_column(String, nullable=False)
    stream_url: Mapped[str] = mapped_column(String, nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String, nullable=True)
    favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attributes: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_movies_playlist_genre", "playlist_id", "genre"),
    )

    def __repr__(self) -> str:
        return f"<Movie(id={self.id}, title={self.title}, genre={self.genre})>"


class Series(Base):
    """Series grouped from episode entries of a playlist"""
    __tablename__ = "series"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    playlist_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("playlists.id", ondelete="CASCADE"),
        nullable=False
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    genre: Mapped[str] = mapped_column(String, nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attributes: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    episodes: Mapped[list["Episode"]] = relationship(
        back_populates="series",
        order_by="Episode.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_series_playlist_genre", "playlist_id", "genre"),
    )

    def __repr__(self) -> str:
        return f"<Series(id={self.id}, title={self.title}, genre={self.genre})>"


class Episode(Base):
    """Episode belonging to exactly one series"""
    __tablename__ = "episodes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    series_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("series.id", ondelete="CASCADE"),
        nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    season_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    episode_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stream_url: Mapped[str] = mapped_column(String, nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    attributes: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)

    series: Mapped[Series] = relationship(back_populates="episodes")

    __table_args__ = (
        Index("idx_episodes_series_position", "series_id", "position"),
    )

    def __repr__(self) -> str:
        return f"<Episode(id={self.id}, title={self.title}, series={self.series_id})>"
