"""
test of Pixels and ObjectAccumulator

"""
import math

import numpy as np
import pytest

from pixelObject import ObjectAccumulator, Pixel


def makeObj():
    return ObjectAccumulator( [ Pixel( 0, 0, 1. ), Pixel( 2, 1, 3. ), Pixel( 1, 4, 2. ) ] )


def test_pixel_defaults():
    p = Pixel( 3, 4 )
    assert p.value == 0.0
    assert p.scale == 1.0
    assert p.coord == (3, 4)

    q = p.rescaled( 2.5 )
    assert q.scale == 2.5
    assert q.coord == p.coord
    assert p.scale == 1.0


def test_pixels_order_by_value():
    dim, bright = Pixel( 5, 0, 1. ), Pixel( 0, 0, 9. )
    assert dim < bright
    assert bright > dim
    assert dim <= Pixel( 9, 9, 1. ) and dim >= Pixel( 9, 9, 1. )
    assert sorted( [ bright, dim ] ) == [ dim, bright ]
    assert min( makeObj() ).value == 1.
    assert max( makeObj() ).value == 3.


def test_pixels_equal_on_coord():
    a, b = Pixel( 1, 1, 2. ), Pixel( 1, 1, 3., 0.5 )
    assert a == b
    assert not ( a != b )
    assert hash( a ) == hash( b )
    assert len( { a, b } ) == 1
    assert Pixel( 1, 1, 2. ) != Pixel( 1, 2, 2. )


def test_empty_object():
    obj = ObjectAccumulator()
    assert obj.isEmpty()
    assert obj.size() == 0
    assert obj.xmin == math.inf and obj.ymin == math.inf
    assert obj.xmax == -math.inf and obj.ymax == -math.inf
    assert obj.value_min == math.inf
    assert obj.value_max == -math.inf
    assert obj.value_sum == 0.0

    xs, ys, values, scales = obj.asArrays()
    assert xs.shape == (0,) and scales.shape == (0,)

    with pytest.raises( ValueError ):
        obj.centroid()


def test_append_tracks_stats():
    obj = makeObj()
    assert len( obj ) == 3
    assert obj.boundingBox() == (0, 0, 2, 4)
    assert obj.value_min == 1.
    assert obj.value_max == 3.
    assert obj.value_sum == 6.


def test_append_tuple():
    obj = ObjectAccumulator()
    assert obj.append( (5, 6, 7.) )
    assert isinstance( obj[0], Pixel )
    assert obj[0].scale == 1.0


def test_duplicate_coord_is_refused():
    obj = makeObj()
    assert not obj.append( Pixel( 2, 1, 100. ) )
    assert len( obj ) == 3
    assert obj.value_sum == 6.
    assert obj.value_max == 3.


def test_contains_and_overlaps():
    obj = makeObj()
    assert obj.contains( Pixel( 2, 1 ) )
    assert (1, 4) in obj
    assert (1, 1) not in obj

    other = ObjectAccumulator( [ Pixel( 9, 9, 1. ), Pixel( 1, 4, 5. ) ] )
    assert obj.overlaps( other )
    assert not obj.overlaps( ObjectAccumulator( [ Pixel( 9, 9, 1. ) ] ) )
    assert not obj.overlaps( ObjectAccumulator() )


def test_remove_keeps_extrema():
    obj = makeObj()
    gone = obj.remove( 1 )
    assert gone.coord == (2, 1)
    assert len( obj ) == 2
    assert obj.value_sum == 3.
    assert (2, 1) not in obj
    # stale on purpose
    assert obj.xmax == 2
    assert obj.value_max == 3.

    with pytest.raises( IndexError ):
        obj.remove( 5 )


def test_centroid_weighted():
    obj = ObjectAccumulator( [ Pixel( 0, 0, 1. ), Pixel( 2, 0, 3. ) ] )
    assert obj.centroid() == pytest.approx( (1.5, 0.0) )
    assert obj.centroid( weight_bins=False ) == pytest.approx( (1.0, 0.0) )


def test_centroid_scale():
    obj = ObjectAccumulator( [ Pixel( 0, 0, 1., 3. ), Pixel( 4, 2, 1., 1. ) ] )
    assert obj.centroid( weight_bins=False ) == pytest.approx( (1.0, 0.5) )


def test_centroid_dim_object_falls_back():
    obj = ObjectAccumulator( [ Pixel( 0, 0, -1. ), Pixel( 2, 2, 1. ) ] )
    assert obj.centroid() == pytest.approx( (1.0, 1.0) )


def test_centroid_zero_scales():
    obj = ObjectAccumulator( [ Pixel( 0, 0, 1., 0. ) ] )
    with pytest.raises( ValueError ):
        obj.centroid()


def test_as_arrays():
    xs, ys, values, scales = makeObj().asArrays()
    assert xs.dtype == np.float64
    assert xs.tolist() == [ 0., 2., 1. ]
    assert ys.tolist() == [ 0., 1., 4. ]
    assert values.tolist() == [ 1., 3., 2. ]
    assert scales.tolist() == [ 1., 1., 1. ]


def test_sort_by_value():
    obj = makeObj()
    obj.sort()
    assert [ p.value for p in obj ] == [ 1., 2., 3. ]


def test_clear():
    obj = makeObj()
    obj.clear()
    assert obj.isEmpty()
    assert obj.value_sum == 0.0
    assert obj.xmax == -math.inf
    assert obj.append( Pixel( 0, 0, 1. ) )


def test_copy_is_independent():
    obj = makeObj()
    dupe = obj.copy()
    dupe.append( Pixel( 7, 7, 10. ) )
    assert len( obj ) == 3
    assert len( dupe ) == 4
    assert obj.xmax == 2
    assert dupe.xmax == 7
    assert (7, 7) not in obj


def test_repr():
    assert repr( makeObj() ).startswith( "Object of 3 px BB: 0-0, 2-4." )
