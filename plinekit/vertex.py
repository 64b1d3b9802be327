from .plinemath import REAL_PRECISION, REAL_THRESHOLD


class PlineVertex:
    """
    Polyline vertex. The bulge describes the segment that starts at this vertex:

    bulge == 0 is a straight line to the next vertex, otherwise the segment is an
    arc with an included angle of 4 * atan(|bulge|), counter-clockwise for positive
    bulge values and clockwise for negative ones.
    """

    __slots__ = ("x", "y", "bulge")

    def __init__(self, x=0.0, y=0.0, bulge=0.0):
        self.x = float(x)
        self.y = float(y)
        self.bulge = float(bulge)

    @classmethod
    def from_pos(cls, pos, bulge=0.0):
        return cls(pos.real, pos.imag, bulge)

    def __repr__(self):
        return f"PlineVertex({self.x}, {self.y}, {self.bulge})"

    def __eq__(self, other):
        if not isinstance(other, PlineVertex):
            return NotImplemented
        return self.x == other.x and self.y == other.y and self.bulge == other.bulge

    def __hash__(self):
        return hash((self.x, self.y, self.bulge))

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.bulge

    def __copy__(self):
        return PlineVertex(self.x, self.y, self.bulge)

    @property
    def pos(self):
        return complex(self.x, self.y)

    def with_bulge(self, bulge):
        return PlineVertex(self.x, self.y, bulge)

    def bulge_is_zero(self, eps=REAL_THRESHOLD):
        return abs(self.bulge) < eps

    def bulge_is_pos(self):
        return self.bulge > 0.0

    def fuzzy_eq(self, other, eps=REAL_PRECISION):
        return (
            abs(self.x - other.x) < eps
            and abs(self.y - other.y) < eps
            and abs(self.bulge - other.bulge) < eps
        )
