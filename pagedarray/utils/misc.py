class Viewport:
    """Window of `rows` consecutive rows over a collection whose length may change."""

    def __init__(self, collection, *, rows=20):
        if rows <= 0:
            raise ValueError(f"Viewport needs at least one row, got {rows}")

        self.collection = collection
        self.rows = rows
        self.top = 0

    @property
    def visible(self) -> range:
        top = self._clamped(self.top)
        return range(top, min(top + self.rows, len(self.collection)))

    def previous(self):
        """Scroll up one window; wrap around if at the top."""
        self.clamp()
        if self.top == 0:
            self.top = self._clamped(len(self.collection))
        else:
            self.top = max(0, self.top - self.rows)

    def next(self):
        """Scroll down one window; wrap around if at the bottom."""
        self.clamp()
        if self.top + self.rows >= len(self.collection):
            self.top = 0
        else:
            self.top = self._clamped(self.top + self.rows)

    def goto(self, row):
        if not 0 <= row < max(1, len(self.collection)):
            raise ValueError(f"Row {row} out of bounds")

        self.top = self._clamped(row)

    def clamp(self):
        """Keep the window inside the collection after it shrank."""
        self.top = self._clamped(self.top)

    def _clamped(self, top):
        return max(0, min(top, len(self.collection) - self.rows))
