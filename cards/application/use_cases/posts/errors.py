"""Errors raised by the post use cases."""


class PostNotFoundError(ValueError):
    def __init__(self, post_id: int) -> None:
        super().__init__(f"Publicación {post_id} no encontrada")
        self.post_id = post_id


class AlreadyLikedError(ValueError):
    def __init__(self) -> None:
        super().__init__("Ya te gusta esta publicación")


class NotLikedError(ValueError):
    def __init__(self) -> None:
        super().__init__("Aún no te gusta esta publicación")
