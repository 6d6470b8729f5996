"""
test of ObjectStore

"""
from objectStore import ObjectStore
from pixelObject import ObjectAccumulator, Pixel


def buf( n ):
    return [ Pixel( x, 0, 1. ) for x in range( n ) ]


def test_write_keeps_order():
    store = ObjectStore()
    first = store.write( buf( 2 ) )
    second = store.write( buf( 5 ) )
    assert isinstance( first, ObjectAccumulator )
    assert store.numObjects() == 2
    assert store.getObject( 0 ) is first
    assert store[1] is second
    assert [ len( o ) for o in store ] == [ 2, 5 ]


def test_small_buffers_dropped():
    store = ObjectStore( min_pixels=3 )
    assert store.write( buf( 2 ) ) is None
    assert store.write( buf( 3 ) ) is not None
    assert len( store ) == 1
    assert store.rejected == 1


def test_empty_buffer_is_not_a_rejection():
    store = ObjectStore( min_pixels=3 )
    assert store.write( [] ) is None
    assert store.rejected == 0
    assert len( store ) == 0


def test_write_copies_buffer():
    store = ObjectStore()
    pixels = buf( 3 )
    obj = store.write( pixels )
    pixels.append( Pixel( 9, 9, 1. ) )
    assert len( obj ) == 3


def test_get_objects_is_a_copy():
    store = ObjectStore()
    store.write( buf( 1 ) )
    objs = store.getObjects()
    objs.clear()
    assert store.numObjects() == 1


def test_clear():
    store = ObjectStore( min_pixels=2 )
    store.write( buf( 1 ) )
    store.write( buf( 4 ) )
    store.clear()
    assert len( store ) == 0
    assert store.rejected == 0
    assert store.min_pixels == 2
