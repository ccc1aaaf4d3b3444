"""Affine transformations of 3D homogeneous coordinates for brepCAD.

A :class:`Transform` is an immutable 4x4 matrix stored row-major as a tuple
of tuples.  Points are treated as column vectors, so ``(A @ B)`` applies
``B`` first and then ``A``.  Transforms are closed under composition and
never mutated in place.

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import math

import numpy as np

from brepcad.errors import MathError
from brepcad.geom import (Plane, Point3, Vector3, as_point3, as_vector3,
                          epsilon, isgoodnum, pi2)

_IDENTITY = ((1.0, 0.0, 0.0, 0.0),
             (0.0, 1.0, 0.0, 0.0),
             (0.0, 0.0, 1.0, 0.0),
             (0.0, 0.0, 0.0, 1.0))


class Transform:
    """4x4 affine transformation matrix."""

    __slots__ = ('_m',)

    def __init__(self, m=None):
        if m is None:
            object.__setattr__(self, '_m', _IDENTITY)
            return
        if isinstance(m, Transform):
            object.__setattr__(self, '_m', m._m)
            return
        rows = [list(r) for r in m]
        if len(rows) != 4 or any(len(r) != 4 for r in rows):
            raise MathError('transform matrix must be 4x4')
        for r in rows:
            for x in r:
                if not isgoodnum(x) or not math.isfinite(float(x)):
                    raise MathError(f'bad element in matrix initialization: {x!r}')
        bottom = rows[3]
        if any(abs(float(a) - b) > epsilon for a, b in zip(bottom, (0.0, 0.0, 0.0, 1.0))):
            raise MathError('transform matrix must be affine (last row 0 0 0 1)')
        object.__setattr__(self, '_m', tuple(tuple(float(x) for x in r) for r in rows))

    def __setattr__(self, name, value):
        raise AttributeError('Transform is immutable')

    def __repr__(self):
        rows = ', '.join('[' + ', '.join(f'{x:g}' for x in r) + ']' for r in self._m)
        return f'Transform([{rows}])'

    def __eq__(self, other):
        if not isinstance(other, Transform):
            return NotImplemented
        return all(abs(a - b) < epsilon
                   for ra, rb in zip(self._m, other._m) for a, b in zip(ra, rb))

    __hash__ = None

    @property
    def matrix(self):
        return self._m

    def get(self, i, j):
        return self._m[i][j]

    def compose(self, other):
        """Return ``self @ other``: apply ``other`` first, then ``self``."""
        a = self._m
        b = other._m
        return Transform([[sum(a[i][k] * b[k][j] for k in range(4)) for j in range(4)]
                          for i in range(4)])

    def __matmul__(self, other):
        if not isinstance(other, Transform):
            return NotImplemented
        return self.compose(other)

    def determinant(self):
        """Determinant of the linear 3x3 part."""
        m = self._m
        return (m[0][0] * (m[1][1] * m[2][2] - m[1][2] * m[2][1]) -
                m[0][1] * (m[1][0] * m[2][2] - m[1][2] * m[2][0]) +
                m[0][2] * (m[1][0] * m[2][1] - m[1][1] * m[2][0]))

    def is_orientation_preserving(self):
        return self.determinant() > 0.0

    def is_singular(self):
        return abs(self.determinant()) < epsilon

    def inverse(self):
        if self.is_singular():
            raise MathError('cannot invert a singular transform')
        inv = np.linalg.inv(np.array(self._m, dtype=float))
        inv[3] = (0.0, 0.0, 0.0, 1.0)
        return Transform(inv.tolist())

    def apply_point(self, p):
        p = as_point3(p)
        m = self._m
        return Point3(m[0][0] * p.x + m[0][1] * p.y + m[0][2] * p.z + m[0][3],
                      m[1][0] * p.x + m[1][1] * p.y + m[1][2] * p.z + m[1][3],
                      m[2][0] * p.x + m[2][1] * p.y + m[2][2] * p.z + m[2][3])

    def apply_vector(self, v):
        v = as_vector3(v)
        m = self._m
        return Vector3(m[0][0] * v.x + m[0][1] * v.y + m[0][2] * v.z,
                       m[1][0] * v.x + m[1][1] * v.y + m[1][2] * v.z,
                       m[2][0] * v.x + m[2][1] * v.y + m[2][2] * v.z)

    def apply_normal(self, n):
        """Transform a surface normal (inverse transpose), renormalized."""
        n = as_vector3(n)
        inv = self.inverse()._m
        # multiply by the transpose of the inverse
        return Vector3(inv[0][0] * n.x + inv[1][0] * n.y + inv[2][0] * n.z,
                       inv[0][1] * n.x + inv[1][1] * n.y + inv[2][1] * n.z,
                       inv[0][2] * n.x + inv[1][2] * n.y + inv[2][2] * n.z).normalize()

    def apply_plane(self, plane):
        """Image of ``plane``; the normal follows the transformed axes."""
        return Plane(self.apply_point(plane.origin),
                     self.apply_vector(plane.u_axis),
                     self.apply_vector(plane.v_axis))

    def is_similarity(self):
        """True if the linear part is a rotation/reflection times a uniform scale."""
        cols = [self.apply_vector(Vector3(1, 0, 0)),
                self.apply_vector(Vector3(0, 1, 0)),
                self.apply_vector(Vector3(0, 0, 1))]
        lengths = [c.magnitude() for c in cols]
        scale = lengths[0]
        if scale < epsilon:
            return False
        tol = 1e-9 * max(1.0, scale * scale)
        if any(abs(ln - scale) > 1e-9 * max(1.0, scale) for ln in lengths):
            return False
        return (abs(cols[0].dot(cols[1])) < tol and abs(cols[0].dot(cols[2])) < tol and
                abs(cols[1].dot(cols[2])) < tol)

    def uniform_scale(self):
        """Scale factor of a similarity transform."""
        return self.apply_vector(Vector3(1, 0, 0)).magnitude()


def identity():
    return Transform()


# return the generalized 4x4 arbitrary axis rotation matrix
def Rotation(axis, angle, center=None, inverse=False):
    """Rotation by ``angle`` degrees about ``axis`` (through ``center``)."""
    u = as_vector3(axis)
    if u.magnitude() < epsilon:
        raise MathError('zero-length rotation axis not allowed')
    u = u.normalize()

    if inverse:
        angle *= -1.0
    rad = (angle % 360.0) * pi2 / 360.0

    ux, uy, uz = u.x, u.y, u.z
    cang = math.cos(rad)
    cmin = 1.0 - cang
    sang = math.sin(rad)

    # see http://www.opengl-tutorial.org/assets/faq_quaternions/index.html#Q38
    R = [[cang + ux * ux * cmin, ux * uy * cmin - uz * sang, ux * uz * cmin + uy * sang, 0],
         [uy * ux * cmin + uz * sang, cang + uy * uy * cmin, uy * uz * cmin - ux * sang, 0],
         [uz * ux * cmin - uy * sang, uz * uy * cmin + ux * sang, cang + uz * uz * cmin, 0],
         [0, 0, 0, 1]]
    rot = Transform(R)
    if center is None:
        return rot
    c = as_vector3(center)
    return Translation(c) @ rot @ Translation(-c)


def Translation(delta, inverse=False):
    d = as_vector3(delta)
    if inverse:
        d = -d
    return Transform([[1, 0, 0, d.x],
                      [0, 1, 0, d.y],
                      [0, 0, 1, d.z],
                      [0, 0, 0, 1]])


def Scale(x, y=None, z=None, inverse=False):
    """Scale by ``x`` uniformly, or by ``(x, y, z)`` per axis."""
    if isgoodnum(x) and y is None and z is None:
        sx = sy = sz = float(x)
    elif isgoodnum(x) and isgoodnum(y) and isgoodnum(z):
        sx, sy, sz = float(x), float(y), float(z)
    elif isinstance(x, (list, tuple, Vector3)) and y is None and z is None:
        sx, sy, sz = (float(c) for c in x)
    else:
        raise MathError('bad scaling values passed to Scale')

    if inverse:
        if min(abs(sx), abs(sy), abs(sz)) < epsilon:
            raise MathError('cannot invert a zero scale')
        sx, sy, sz = 1.0 / sx, 1.0 / sy, 1.0 / sz

    return Transform([[sx, 0, 0, 0],
                      [0, sy, 0, 0],
                      [0, 0, sz, 0],
                      [0, 0, 0, 1.0]])


def Mirror(plane):
    """Reflection through ``plane`` (a Householder matrix)."""
    n = plane.normal
    d = plane.offset
    nx, ny, nz = n.x, n.y, n.z
    return Transform([[1 - 2 * nx * nx, -2 * nx * ny, -2 * nx * nz, 2 * d * nx],
                      [-2 * ny * nx, 1 - 2 * ny * ny, -2 * ny * nz, 2 * d * ny],
                      [-2 * nz * nx, -2 * nz * ny, 1 - 2 * nz * nz, 2 * d * nz],
                      [0, 0, 0, 1]])


__all__ = ['Transform', 'identity', 'Rotation', 'Translation', 'Scale', 'Mirror']
