"""
test of Connected Components

"""
import queue
import threading

import cv2
import numpy as np
import pytest

import vision
from conftest import blocks, pixelSets
from pixelSource import OutOfRange, PixelSource, Threshold


def cvComponents( mask ):
    """ What OpenCV thinks the 8-connected components are """
    num, labels = cv2.connectedComponents( mask.astype( np.uint8 ), connectivity=8 )
    ret = []
    for label in range( 1, num ):
        ys, xs = np.nonzero( labels == label )
        ret.append( frozenset( zip( xs.tolist(), ys.tolist() ) ) )
    return sorted( ret, key=sorted )


def assertSound( objects, img, threshold ):
    seen = set()
    for obj in objects:
        coords = [ (p.x, p.y) for p in obj ]
        xs = [ x for x, _ in coords ]
        ys = [ y for _, y in coords ]
        assert (obj.xmin, obj.xmax, obj.ymin, obj.ymax) == (min(xs), max(xs), min(ys), max(ys))
        assert obj.value_sum == pytest.approx( sum( float( img[y, x] ) for x, y in coords ) )
        assert all( img[y, x] > threshold for x, y in coords )
        assert seen.isdisjoint( coords )
        seen.update( coords )


"""
Basic test
    0  1  2  3  4  5  6  7  8  9 10 11 12 13 14 15
0 [10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0]
1 [10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0]
2 [10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0]
3 [ 0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10]
4 [ 0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10]
5 [ 0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10]
"""
def test_basic_flat_buffer():
    a = ([10]*3 + [0]*13) * 3
    A = np.array( a ).reshape( 3, -1 )
    a.reverse()
    B = np.array( a ).reshape( 3, -1 )
    test = np.vstack( [A, B] )

    objs = vision.connected( test.ravel(), 5, data_wh=test.T.shape )

    assert [ len( o ) for o in objs ] == [ 9, 9 ]
    assert objs[0].boundingBox() == (0, 0, 2, 2)
    assert objs[1].boundingBox() == (13, 3, 15, 5)


"""
more complext regions
    0  1  2  3  4  5  6  7  8  9 10 11 12 13 14 15 16 17 18 19 20 21 22 23
0 [ 0 10 10 10  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0]
1 [ 0 10 10 10  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0]
2 [ 0 10 10 10  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0]
3 [ 0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0]
4 [ 0  0  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0]
5 [ 0  0  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0  0]
6 [ 0  0  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0  0]
7 [ 0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0  0]
"""
def test_separate_regions():
    test = blocks( (8,24), ( (0,1), (0,5), (0,20), (4,3), (5,19) ) )
    objs = vision.connected( test, 5 )
    assert len( objs ) == 5
    assert all( len( o ) == 9 for o in objs )
    assert pixelSets( objs ) == cvComponents( test > 5 )


"""
Now for a blobby one...
    0  1  2  3  4  5  6  7  8  9 10 11 12 13 14 15 16 17 18 19 20 21 22 23
0 [ 0 10 10 10  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0]
1 [ 0 10 10 10  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0]
2 [ 0 10 10 10  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0]
3 [ 0  0  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0]
4 [ 0  0  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0  0]
5 [ 0  0  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0  0]
6 [ 0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0  0]
7 [ 0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0]
"""
def test_blobby_merge():
    test = blocks( (8,24), ( (0,1), (0,5), (1,20), (3,3), (4,19) ) )
    objs = vision.connected( test, 5 )
    assert sorted( len( o ) for o in objs ) == [ 18, 27 ]
    assert pixelSets( objs ) == cvComponents( test > 5 )
    assertSound( objs, test, 5 )


"""
And an M merge...
    0  1  2  3  4  5  6  7  8  9 10 11 12 13 14 15 16 17 18 19 20 21 22 23  24 25 26 27 28 29 30 31
0 [ 0 10 10 10  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0   0  0  0  0  0  0  0  0]
1 [ 0 10 10 10  0 10 10 10  0  0 10 10 10  0  0  0  0  0  0  0 10 10 10  0   0  0  0  0  0  0  0  0]
2 [ 0 10 10 10  0 10 10 10  0  0 10 10 10  0  0  0  0  0  0  0 10 10 10  0   0  0  0  0  0  0  0  0]
3 [ 0  0  0 10 10 10  0  0  0  0 10 10 10  0  0  0  0  0  0  0 10 10 10  0   0  0  0  0  0  0  0  0]
4 [ 0  0  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0 10 10  10  0  0  0  0  0  0  0]
5 [ 0  0  0 10 10 10  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0 10 10  10  0  0  0  0  0  0  0]
6 [ 0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0 10 10 10  0 10 10  10  0  0  0  0  0  0  0]
7 [ 0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0  0   0  0  0  0  0  0  0  0]
"""
def test_m_merge():
    test = blocks( (8,32), ( (0,1), (0,5), (1,20), (3,3), (4,18), (4,22), (1,10) ) )
    objs = vision.connected( test, 5 )
    assert sorted( len( o ) for o in objs ) == [ 9, 27, 27 ]
    assert pixelSets( objs ) == cvComponents( test > 5 )


def test_single_pixel_min_size():
    img = np.zeros( (3,3) )
    img[1,1] = 1.0
    assert vision.connected( img, 0.5, min_pixels=2 ) == []

    objs = vision.connected( img, 0.5, min_pixels=1 )
    assert len( objs ) == 1
    assert len( objs[0] ) == 1
    assert objs[0][0].coord == (1, 1)


def test_diagonal_pixels_join():
    img = np.zeros( (2,2) )
    img[0,0] = img[1,1] = 1.0
    objs = vision.connected( img, 0.5 )
    assert len( objs ) == 1
    assert sorted( p.coord for p in objs[0] ) == [ (0,0), (1,1) ]


def test_anti_diagonal_pixels_join():
    img = np.zeros( (2,2) )
    img[0,1] = img[1,0] = 1.0
    objs = vision.connected( img, 0.5 )
    assert len( objs ) == 1
    assert len( objs[0] ) == 2


def test_gap_splits():
    img = np.zeros( (1,3) )
    img[0,0] = img[0,2] = 1.0
    objs = vision.connected( img, 0.5 )
    assert [ [ p.coord for p in o ] for o in objs ] == [ [ (0,0) ], [ (2,0) ] ]


def test_secondary_segment_keeps_leading_pixels():
    # row 2 starts a run diagonally left of the second leg, the run is
    # opened as a new object and then folded into the legs' object
    img = np.array( [
        [ 1, 1, 1, 1, 1 ],
        [ 1, 0, 0, 0, 1 ],
        [ 0, 0, 0, 1, 1 ],
    ], dtype=np.float64 )
    objs = vision.connected( img, 0.5 )
    assert len( objs ) == 1
    assert len( objs[0] ) == 9
    assert (3, 2) in objs[0]


def test_nested_cups():
    # outer cup closes diagonally on the last row, inner cup stays apart
    img = np.array( [
        [ 1, 0, 0, 0, 0, 0, 0, 0, 1 ],
        [ 1, 0, 0, 1, 0, 1, 0, 0, 1 ],
        [ 1, 0, 0, 1, 1, 1, 0, 0, 1 ],
        [ 1, 0, 0, 0, 0, 0, 0, 0, 1 ],
        [ 0, 1, 1, 1, 1, 1, 1, 1, 0 ],
    ], dtype=np.float64 )
    objs = vision.connected( img, 0.5 )
    assert pixelSets( objs ) == cvComponents( img > 0.5 )
    assert [ len( o ) for o in objs ] == [ 5, 15 ]


def test_markers_under_last_row():
    img = np.array( [
        [ 1, 1, 1, 1, 1, 1, 1, 1, 0, 0 ],
        [ 1, 1, 1, 0, 0, 1, 1, 0, 0, 0 ],
    ], dtype=np.float64 )
    tracker = vision.SegmentTracker( PixelSource( img ), threshold=0.5 )
    objs = tracker.run()
    assert [ len( o ) for o in objs ] == [ 13 ]
    assert tracker.marker == [ "S", "", "", "f", "", "s", "", "F", "", "", "" ]


def test_spiral():
    img = np.array( [
        [ 1, 1, 1, 1, 1, 1, 1 ],
        [ 0, 0, 0, 0, 0, 0, 1 ],
        [ 1, 1, 1, 1, 1, 0, 1 ],
        [ 1, 0, 0, 0, 1, 0, 1 ],
        [ 1, 0, 1, 1, 1, 0, 1 ],
        [ 1, 0, 0, 0, 0, 0, 1 ],
        [ 1, 1, 1, 1, 1, 1, 1 ],
    ], dtype=np.float64 )
    objs = vision.connected( img, 0.5 )
    assert len( objs ) == 1
    assert len( objs[0] ) == int( img.sum() )


@pytest.mark.parametrize( "seed", range( 12 ) )
@pytest.mark.parametrize( "density", ( 0.3, 0.5, 0.7 ) )
def test_matches_opencv( seed, density ):
    rng = np.random.default_rng( seed )
    img = rng.random( (19, 23) )
    threshold = 1.0 - density
    objs = vision.connected( img, threshold )
    assert pixelSets( objs ) == cvComponents( img > threshold )
    assertSound( objs, img, threshold )


def test_every_hot_pixel_is_reported():
    rng = np.random.default_rng( 42 )
    img = rng.integers( 0, 255, (40, 31) ).astype( np.float64 )
    objs = vision.connected( img, 128 )
    assert sum( len( o ) for o in objs ) == int( (img > 128).sum() )


def test_rescan_is_identical():
    rng = np.random.default_rng( 7 )
    img = rng.random( (25, 25) )
    tracker = vision.SegmentTracker( PixelSource( img ), threshold=0.45 )
    first = [ [ p.coord for p in o ] for o in tracker.run() ]
    second = [ [ p.coord for p in o ] for o in tracker.run() ]
    assert first == second
    assert tracker.numObjects() == len( first )


@pytest.mark.parametrize( "shape", ( (0,0), (0,5), (5,0) ) )
def test_empty_image( shape ):
    assert vision.connected( np.zeros( shape ), 0.5 ) == []


def test_all_hot():
    objs = vision.connected( np.ones( (6,9) ), 0.5 )
    assert len( objs ) == 1
    assert len( objs[0] ) == 54
    assert objs[0].boundingBox() == (0, 0, 8, 5)


def test_single_column():
    img = np.array( [ [1], [1], [0], [1] ], dtype=np.float64 )
    objs = vision.connected( img, 0.5 )
    assert [ len( o ) for o in objs ] == [ 2, 1 ]


def test_bottom_edge_objects_are_flushed():
    img = np.zeros( (3,6) )
    img[2,0:2] = 1.
    img[2,4] = 1.
    objs = vision.connected( img, 0.5 )
    assert [ len( o ) for o in objs ] == [ 2, 1 ]


def test_threshold_is_strict_by_default():
    img = np.array( [ [ 5, 6, 5 ] ], dtype=np.float64 )
    assert [ len( o ) for o in vision.connected( img, 5 ) ] == [ 1 ]

    tracker = vision.SegmentTracker( PixelSource( img ) )
    tracker.setThreshold( 5, inclusive=True )
    assert [ len( o ) for o in tracker.run() ] == [ 3 ]


def test_custom_predicate():
    img = np.array( [ [ -1, 0, -3, 2 ] ], dtype=np.float64 )
    tracker = vision.SegmentTracker( PixelSource( img ), predicate=lambda v: v < 0 )
    objs = tracker.run()
    assert [ p.coord for o in objs for p in o ] == [ (0,0), (2,0) ]
    assert tracker.getObject( 1 ).value_sum == -3


def test_completion_order():
    # the tall object on the left closes after the dot on the right
    img = np.zeros( (5,5) )
    img[0:5,0] = 1.
    img[1,3] = 1.
    objs = vision.connected( img, 0.5 )
    assert [ len( o ) for o in objs ] == [ 1, 5 ]


def test_rejected_count():
    img = np.zeros( (4,8) )
    img[0,0] = img[2,2] = 1.
    img[0,5:8] = 1.
    tracker = vision.SegmentTracker( PixelSource( img ), threshold=0.5, min_pixels=2 )
    objs = tracker.run()
    assert [ len( o ) for o in objs ] == [ 3 ]
    assert tracker.objects.rejected == 2


def test_no_source():
    with pytest.raises( ValueError ):
        vision.SegmentTracker().run()


def test_source_hook_out_of_range():
    class ShortRows( PixelSource ):
        def rowValues( self, y ):
            return PixelSource.rowValues( self, y + 1 )

    tracker = vision.SegmentTracker( ShortRows( np.ones( (3,3) ) ), threshold=0.5 )
    with pytest.raises( OutOfRange ):
        tracker.run()


def test_corrupt_stack_is_fatal():
    tracker = vision.SegmentTracker( PixelSource( np.zeros( (1,1) ) ) )
    tracker._reset( 4 )
    with pytest.raises( vision.ScanStateError ):
        tracker._processMarker( vision.MARK_FINISHED, 0 )


def test_dets():
    img = blocks( (6,8), ( (1,2), ) )
    objs = vision.connected( img, 5 )
    (x, y, r, score), = vision.objs2dets( objs )
    assert x == pytest.approx( 3.5 )
    assert y == pytest.approx( 2.5 )
    assert r == pytest.approx( 2. / 3., rel=1e-4 )
    assert score == pytest.approx( 1.0 )

    (x, y, r, score), = vision.objs2detsBB( objs )
    assert (x, y, r, score) == (3.5, 2.5, 1.0, 1.0)


def test_dets_elongated():
    img = np.zeros( (3,9) )
    img[1,1:8] = 4.
    img[0,4] = img[2,4] = 4.
    (x, y, r, score), = vision.objs2dets( vision.connected( img, 1 ) )
    assert x == pytest.approx( 4.5 )
    assert y == pytest.approx( 1.5 )
    assert score < 0.2


# Test scatter/Gather processing
def test_detman_threads():
    img_wh = (64, 48)
    images = []
    for seed in range( 4 ):
        img = np.zeros( (img_wh[1], img_wh[0]), dtype=np.uint8 )
        rng = np.random.default_rng( seed )
        for _ in range( 6 ):
            x, y = int( rng.integers( 4, 60 ) ), int( rng.integers( 4, 44 ) )
            cv2.circle( img, (x,y), int( rng.integers( 1, 4 ) ), (200), -1 )
        images.append( img )

    serial = [ vision.DetMan( img_wh, 155, id=i ).push( img.ravel() ) for i, img in enumerate( images ) ]

    ret_q = queue.Queue()
    proc_list = []
    for i, img in enumerate( images ):
        man = vision.DetMan( img_wh, 155, id=i )
        thread = threading.Thread( target=man.push, args=(img.ravel(), ret_q,) )
        proc_list.append( thread )
        thread.start()
    for proc in proc_list:
        proc.join()

    ret_list = [ None ] * len( images )
    while( not ret_q.empty() ):
        idx, result = ret_q.get()
        ret_list[ idx ] = (idx, result)

    assert ret_list == serial
    assert all( len( dets ) > 0 for _, dets in serial )


def test_threshold_object():
    t = Threshold( 2 )
    assert not t( 2 )
    assert t.isSignificant( 2.5 )
