"""
test of PixelSource and Threshold

"""
import cv2
import numpy as np
import pytest

from pixelSource import OutOfRange, PixelSource, Threshold


def test_value_at():
    src = PixelSource( np.arange( 12 ).reshape( 3, 4 ) )
    assert src.size() == (4, 3)
    assert src.valueAt( 0, 0 ) == 0.
    assert src.valueAt( 3, 2 ) == 11.
    assert isinstance( src.valueAt( 1, 1 ), float )


@pytest.mark.parametrize( "x, y", ( (-1, 0), (4, 0), (0, 3), (0, -1) ) )
def test_out_of_range( x, y ):
    src = PixelSource( np.zeros( (3,4) ) )
    with pytest.raises( OutOfRange ) as err:
        src.valueAt( x, y )
    assert isinstance( err.value, IndexError )
    assert "4x3" in str( err.value )


def test_flat_buffer():
    src = PixelSource( list( range( 6 ) ), data_wh=(3, 2) )
    assert src.size() == (3, 2)
    assert src.valueAt( 0, 1 ) == 3.
    assert src.rowValues( 1 ) == [ 3., 4., 5. ]


def test_flat_buffer_wrong_size():
    with pytest.raises( ValueError ):
        PixelSource( np.zeros( 7 ), data_wh=(3, 2) )


def test_not_2d():
    with pytest.raises( ValueError ):
        PixelSource( np.zeros( 5 ) )
    with pytest.raises( ValueError ):
        PixelSource( np.zeros( (2,2,3) ) )


def test_row_values():
    src = PixelSource( np.array( [ [1, 2], [3, 4] ], dtype=np.uint8 ) )
    row = src.rowValues( 0 )
    assert row == [ 1., 2. ]
    assert all( isinstance( v, float ) for v in row )
    with pytest.raises( OutOfRange ):
        src.rowValues( 2 )


def test_from_grey_file( tmp_path ):
    img = np.zeros( (5,7), dtype=np.uint8 )
    img[2,3] = 200
    path = tmp_path / "grey.png"
    assert cv2.imwrite( str( path ), img )

    src = PixelSource.fromImageFile( path )
    assert src.size() == (7, 5)
    assert src.data.dtype == np.float64
    assert src.valueAt( 3, 2 ) == 200.
    assert src.valueAt( 0, 0 ) == 0.


def test_from_colour_file( tmp_path ):
    img = np.zeros( (4,6,3), dtype=np.uint8 )
    img[1,1] = (255, 255, 255)
    path = tmp_path / "colour.png"
    assert cv2.imwrite( str( path ), img )

    src = PixelSource.fromImageFile( path )
    assert src.data.ndim == 2
    assert src.size() == (6, 4)
    assert src.valueAt( 1, 1 ) == 255.
    assert src.valueAt( 2, 2 ) == 0.


def test_missing_file( tmp_path ):
    with pytest.raises( IOError ):
        PixelSource.fromImageFile( tmp_path / "nothing.png" )


def test_threshold():
    strict = Threshold( 5 )
    assert not strict( 5 )
    assert strict( 5.01 )
    assert not strict( -10 )

    inclusive = Threshold( 5, inclusive=True )
    assert inclusive( 5 )
    assert not inclusive( 4.99 )

    assert Threshold().level == 0.0
    assert repr( inclusive ) == "Threshold >= 5"
