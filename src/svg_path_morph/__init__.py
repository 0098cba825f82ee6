# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

__version__ = "0.1.0"

from .command import Command as Command
from .command import SvgChar as SvgChar
from .geometry import Matrix as Matrix
from .geometry import Point as Point
from .path import Path as Path
from .path_mutator import PathMutator as PathMutator
from .path_parser import PathParser as PathParser
from .path_state import HitOptions as HitOptions
from .path_state import HitResult as HitResult
from .path_state import ProjectionOntoPath as ProjectionOntoPath
from .path_util import from_path_op_string as from_path_op_string
from .path_util import interpolate as interpolate
