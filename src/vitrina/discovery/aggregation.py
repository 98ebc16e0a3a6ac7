"""
Capa de agregación reactiva.

Por cada listing visible mantiene:
- Rating en vivo (promedio y cantidad de reseñas aprobadas)
- Estado de favorito del usuario que mira, con toggle

No filtra resultados: solo los anota. El usuario se pasa siempre
explícito, nunca se lee de un contexto global.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Iterable, Optional

import structlog

from vitrina.config import get_settings
from vitrina.database import FavoriteRepository, ReviewRepository
from vitrina.discovery.channels import Channel, PollingFeed, Subscription
from vitrina.errors import AuthenticationRequired, FavoriteError, StoreError
from vitrina.models import Favorite, RatingSummary, Review

logger = structlog.get_logger()


def summarize_ratings(reviews: Iterable[Any]) -> RatingSummary:
    """Promedio aritmético de las reseñas aprobadas con rating válido."""
    total = 0
    count = 0
    for raw in reviews:
        try:
            review = Review.from_row(raw)
        except ValueError:
            continue
        if not review.counts:
            continue
        total += review.rating
        count += 1
    if count == 0:
        return RatingSummary()
    return RatingSummary(average_rating=total / count, review_count=count)


class ReviewFeed(PollingFeed[RatingSummary]):
    """Rating en vivo de un listing. Arranca en (0.0, 0)."""

    def __init__(
        self,
        listing_id: str,
        review_repo: ReviewRepository,
        poll_interval: float,
    ):
        self.listing_id = listing_id
        self._repo = review_repo
        super().__init__(
            name=f"reviews:{listing_id}",
            poll_interval=poll_interval,
            initial=RatingSummary(),
        )

    async def _poll(self) -> RatingSummary:
        try:
            rows = self._repo.get_approved(self.listing_id)
        except Exception as e:
            raise StoreError("reviews.get_approved", e) from e
        return summarize_ratings(rows or [])

    def _signature(self, value: RatingSummary) -> tuple:
        return (value.average_rating, value.review_count)

    @property
    def summary(self) -> RatingSummary:
        return self.channel.latest


class FavoriteState(str, Enum):
    UNKNOWN = "unknown"
    FAVORITED = "favorited"
    NOT_FAVORITED = "not_favorited"


class FavoriteLocks:
    """Un lock por par (usuario, listing) para serializar toggles."""

    def __init__(self):
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    def get(self, user_id: str, listing_id: str) -> asyncio.Lock:
        key = (user_id, listing_id)
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def release(self, user_id: str, listing_id: str) -> None:
        """Descarta el lock del par si nadie lo tiene tomado."""
        key = (user_id, listing_id)
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class FavoriteTracker:
    """
    Estado de favorito de un (usuario, listing).

    UNKNOWN -> FAVORITED | NOT_FAVORITED al resolver;
    FAVORITED <-> NOT_FAVORITED con toggle();
    vuelve a UNKNOWN con reset() o al cambiar de usuario.
    """

    def __init__(
        self,
        listing_id: str,
        user_id: Optional[str],
        favorite_repo: FavoriteRepository,
        locks: Optional[FavoriteLocks] = None,
        listing_title: Optional[str] = None,
    ):
        self.listing_id = listing_id
        self.listing_title = listing_title
        self._user_id = user_id
        self._repo = favorite_repo
        self._locks = locks or FavoriteLocks()
        self._favorite_id: Optional[str] = None
        self.channel: Channel[FavoriteState] = Channel(
            name=f"favorite:{listing_id}", initial=FavoriteState.UNKNOWN
        )

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def state(self) -> FavoriteState:
        return self.channel.latest

    @property
    def favorite_id(self) -> Optional[str]:
        return self._favorite_id

    def subscribe(self, callback: Callable[[FavoriteState], None]) -> Subscription:
        return self.channel.subscribe(callback)

    def _set(self, state: FavoriteState, favorite_id: Optional[str] = None) -> None:
        self._favorite_id = favorite_id
        if state != self.state:
            self.channel.publish(state)

    def reset(self) -> None:
        self._set(FavoriteState.UNKNOWN)

    def set_user(self, user_id: Optional[str]) -> None:
        """Cambia el usuario que mira. Si cambia, el estado vuelve a UNKNOWN."""
        if user_id == self._user_id:
            return
        if self._user_id:
            self._locks.release(self._user_id, self.listing_id)
        self._user_id = user_id
        self.reset()

    async def resolve(self) -> FavoriteState:
        """Consulta el store. Si falla, el estado queda como estaba."""
        if not self._user_id:
            self._set(FavoriteState.NOT_FAVORITED)
            return self.state
        try:
            record = self._repo.find(self._user_id, self.listing_id)
        except Exception as e:
            logger.warning(
                "Error consultando favorito",
                user_id=self._user_id,
                listing_id=self.listing_id,
                error=str(e),
            )
            return self.state

        if record:
            self._set(FavoriteState.FAVORITED, str(record.get("id")))
        else:
            self._set(FavoriteState.NOT_FAVORITED)
        return self.state

    async def toggle(self) -> FavoriteState:
        """
        Agrega o quita el favorito.

        Si existe se borra. Si no, se vuelve a consultar antes de insertar
        por si otro toggle lo creó en el medio. Los toggles del mismo par
        se serializan con un lock.

        Raises:
            AuthenticationRequired: Si no hay usuario
            FavoriteError: Si el store falla (el estado no cambia)
        """
        if not self._user_id:
            raise AuthenticationRequired("Iniciá sesión para guardar favoritos")

        user_id = self._user_id
        async with self._locks.get(user_id, self.listing_id):
            if self.state == FavoriteState.UNKNOWN:
                await self.resolve()
                if self.state == FavoriteState.UNKNOWN:
                    raise FavoriteError("No se pudo consultar el estado del favorito")

            try:
                if self.state == FavoriteState.FAVORITED:
                    favorite_id = self._favorite_id or self._find_id(user_id)
                    if favorite_id:
                        self._repo.delete(favorite_id)
                    self._set(FavoriteState.NOT_FAVORITED)
                    return self.state

                existing = self._repo.find(user_id, self.listing_id)
                if existing:
                    # Creado por un toggle concurrente: se adopta
                    logger.info(
                        "Favorito ya existía al insertar",
                        user_id=user_id,
                        listing_id=self.listing_id,
                    )
                    self._set(FavoriteState.FAVORITED, str(existing.get("id")))
                    return self.state

                created = self._repo.create(
                    Favorite(
                        user_id=user_id,
                        listing_id=self.listing_id,
                        listing_title=self.listing_title,
                    )
                )
                created_id = created.get("id") if created else None
                # El insert no siempre devuelve la fila
                favorite_id = str(created_id) if created_id else self._find_id(user_id)
            except Exception as e:
                logger.error(
                    "Error actualizando favorito",
                    user_id=user_id,
                    listing_id=self.listing_id,
                    error=str(e),
                )
                raise FavoriteError(f"No se pudo actualizar el favorito: {e}") from e

            self._set(FavoriteState.FAVORITED, favorite_id)
            return self.state

    def _find_id(self, user_id: str) -> Optional[str]:
        record = self._repo.find(user_id, self.listing_id)
        if record and record.get("id"):
            return str(record["id"])
        return None

    def close(self) -> None:
        if self._user_id:
            self._locks.release(self._user_id, self.listing_id)
        self.channel.close()


class ListingAnnotations:
    """Handle por listing: rating en vivo + favorito. close() libera todo."""

    def __init__(
        self,
        listing_id: str,
        user_id: Optional[str],
        review_repo: ReviewRepository,
        favorite_repo: FavoriteRepository,
        poll_interval: float,
        locks: Optional[FavoriteLocks] = None,
        listing_title: Optional[str] = None,
    ):
        self.listing_id = listing_id
        self.reviews = ReviewFeed(listing_id, review_repo, poll_interval)
        self.favorite = FavoriteTracker(
            listing_id,
            user_id,
            favorite_repo,
            locks=locks,
            listing_title=listing_title,
        )
        self._closed = False

    @property
    def rating(self) -> RatingSummary:
        return self.reviews.summary

    @property
    def favorite_state(self) -> FavoriteState:
        return self.favorite.state

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self, resolve_favorite: bool = True) -> None:
        """Arranca el polling de reseñas y resuelve el favorito."""
        self.reviews.start()
        if resolve_favorite:
            await self.favorite.resolve()

    async def toggle_favorite(self) -> FavoriteState:
        return await self.favorite.toggle()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.reviews.close()
        self.favorite.close()


class AnnotationRegistry:
    """
    Dueño de los handles del set visible.

    attach() crea handles para los listings nuevos y cierra los que
    salieron de pantalla; set_viewer() cierra todo y vuelve a empezar
    con el usuario nuevo.
    """

    def __init__(
        self,
        user_id: Optional[str] = None,
        review_repo: Optional[ReviewRepository] = None,
        favorite_repo: Optional[FavoriteRepository] = None,
        poll_interval: Optional[float] = None,
    ):
        self._user_id = user_id
        self._review_repo = review_repo or ReviewRepository()
        self._favorite_repo = favorite_repo or FavoriteRepository()
        self._poll_interval = poll_interval or get_settings().review_poll_interval
        self._locks = FavoriteLocks()
        self._handles: dict[str, ListingAnnotations] = {}
        self._titles: dict[str, Optional[str]] = {}

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def active_count(self) -> int:
        return len(self._handles)

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    def get(self, listing_id: str) -> Optional[ListingAnnotations]:
        return self._handles.get(listing_id)

    def _new_handle(self, listing_id: str) -> ListingAnnotations:
        return ListingAnnotations(
            listing_id,
            self._user_id,
            self._review_repo,
            self._favorite_repo,
            self._poll_interval,
            locks=self._locks,
            listing_title=self._titles.get(listing_id),
        )

    async def attach(
        self, listings: Iterable[Any], resolve_favorites: bool = True
    ) -> dict[str, ListingAnnotations]:
        """
        Sincroniza los handles con el set visible.

        Args:
            listings: IDs de listings o modelos Listing visibles
            resolve_favorites: Si consultar el favorito de los handles nuevos

        Returns:
            Handles vigentes por listing ID
        """
        visible: dict[str, Optional[str]] = {}
        for item in listings:
            if isinstance(item, str):
                visible[item] = None
            else:
                visible[item.id] = getattr(item, "title", None)

        for listing_id in list(self._handles):
            if listing_id not in visible:
                self._handles.pop(listing_id).close()
                self._titles.pop(listing_id, None)

        for listing_id, title in visible.items():
            if listing_id in self._handles:
                continue
            self._titles[listing_id] = title
            handle = self._new_handle(listing_id)
            self._handles[listing_id] = handle
            await handle.start(resolve_favorite=resolve_favorites)

        logger.debug("Handles sincronizados", active=len(self._handles))
        return dict(self._handles)

    async def set_viewer(
        self, user_id: Optional[str], resolve_favorites: bool = True
    ) -> None:
        """Cambia el usuario (login/logout). Cierra y recrea todos los handles."""
        if user_id == self._user_id:
            return
        visible = [(listing_id, self._titles.get(listing_id)) for listing_id in self._handles]
        self.close()
        self._user_id = user_id
        self._locks = FavoriteLocks()

        for listing_id, title in visible:
            self._titles[listing_id] = title
            handle = self._new_handle(listing_id)
            self._handles[listing_id] = handle
            await handle.start(resolve_favorite=resolve_favorites)

        logger.info("Usuario cambiado, handles recreados", active=len(self._handles))

    def close(self) -> None:
        """Libera todos los handles."""
        for handle in self._handles.values():
            handle.close()
        self._handles.clear()
        self._titles.clear()
