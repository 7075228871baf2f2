"""No-op invalidation adapter."""


class NoopInvalidationAdapter:
    """Accepts invalidations and does nothing.

    Useful for hosts that want the dispatcher's logging without a backend.
    """

    async def revalidate_tag(self, tag: str, profile: str | None = None) -> None:
        pass

    async def update_tag(self, tag: str) -> None:
        pass
