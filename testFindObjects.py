"""
test of the findObjects command

"""
import cv2
import numpy as np

import findObjects
import vision


def writeTarget( path ):
    img = np.zeros( (60,80), dtype=np.uint8 )
    cv2.circle( img, (20,20), 4, (220), -1 )
    cv2.circle( img, (60,40), 5, (220), -1 )
    img[50,10] = 220 # single hot pixel
    assert cv2.imwrite( str( path ), img )
    return path


def test_lists_objects( tmp_path, capsys ):
    path = writeTarget( tmp_path / "target.png" )
    assert findObjects.main( [ str( path ), "-t", "128" ] ) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[-1] == "3 objects in 80x60 image, 0 rejected under 1 px"
    assert len( out ) == 4


def test_min_pixels( tmp_path, capsys ):
    path = writeTarget( tmp_path / "target.png" )
    assert findObjects.main( [ str( path ), "-t", "128", "-m", "2" ] ) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[-1] == "2 objects in 80x60 image, 1 rejected under 2 px"


def test_overlay( tmp_path ):
    path = writeTarget( tmp_path / "target.png" )
    overlay = tmp_path / "overlay.png"
    assert findObjects.main( [ str( path ), "-t", "128", "-u", "-o", str( overlay ) ] ) == 0

    img = cv2.imread( str( overlay ) )
    assert img is not None
    assert img.shape == (60, 80, 3)


def test_describe():
    img = np.zeros( (4,4) )
    img[1:3,1:3] = 2.
    obj, = vision.connected( img, 1 )
    line = findObjects.describe( 0, obj )
    assert "4 px" in line
    assert "centroid: 1.500, 1.500" in line


def test_missing_image( tmp_path, capsys ):
    assert findObjects.main( [ str( tmp_path / "missing.png" ) ] ) == 1
    assert "Failed to load image" in capsys.readouterr().out
