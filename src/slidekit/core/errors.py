"""Error taxonomy for the slide element engine and its media pipeline."""


class SlideKitError(Exception):
    """Base class for all SlideKit errors."""


class InvalidTarget(SlideKitError):
    """An operation referenced an element that is missing or locked.

    Engine operations catch this at their boundary and degrade to a no-op.
    """

    def __init__(self, element_id: str, reason: str = "missing"):
        self.element_id = element_id
        self.reason = reason
        super().__init__(f"Element {element_id!r} is {reason}")


class DegenerateLayout(SlideKitError):
    """The rendered preview has no usable width or height yet."""


class ResourceLeakDetected(SlideKitError):
    """Ephemeral handles are still alive when none should be."""

    def __init__(self, owners: list[str]):
        self.owners = owners
        super().__init__(f"{len(owners)} live handle(s) not revoked: {', '.join(owners)}")


class MediaRejected(SlideKitError):
    """The upload pipeline refused an asset."""


class UnsupportedMedia(MediaRejected):
    """The asset is neither an image nor a video."""


class MediaTooLarge(MediaRejected):
    """The asset exceeds the configured size limit."""


class MediaServerError(SlideKitError):
    """A call to the remote media server failed."""
