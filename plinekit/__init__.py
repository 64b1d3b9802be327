"""2D polyline geometry kernel: lines and arcs, parallel offset and boolean operations."""

from .exceptions import *
from .channel import *
from .settings import *
from .plinemath import *
from .vertex import *
from .segment import *
from .views import *
from .polyline import *
from .queries import *
from .spatial import *
from .intersects import *
from .slices import *
from .offset import *
from .boolean import *
