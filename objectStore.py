import logging

from pixelObject import ObjectAccumulator

log = logging.getLogger( __name__ )


class ObjectStore( object ):
    """ Finished objects, in the order the scan closed them.  Buffers smaller
        than min_pixels are dropped on write, that's policy not an error.
    """

    def __init__( self, min_pixels=1 ):
        self.min_pixels = int( min_pixels )
        self.clear()


    def clear( self ):
        self._objects = []
        self.rejected = 0 # count of buffers too small to keep


    def write( self, pixels ):
        """ Make an object from a buffer of pixels, returns it or None if dropped """
        num_px = len( pixels )
        if( num_px < 1 ):
            return None

        if( num_px < self.min_pixels ):
            self.rejected += 1
            log.debug( "Dropped {} px object, below {} px".format( num_px, self.min_pixels ) )
            return None

        obj = ObjectAccumulator( pixels )
        self._objects.append( obj )
        return obj


    def getObject( self, idx ):
        return self._objects[ idx ]


    def getObjects( self ):
        return list( self._objects )


    def numObjects( self ):
        return len( self._objects )


    def __len__( self ):
        return len( self._objects )


    def __getitem__( self, idx ):
        return self._objects[ idx ]


    def __iter__( self ):
        return iter( self._objects )


    def __repr__( self ):
        return "ObjectStore {} objects, {} rejected (min {} px)".format(
            len( self._objects ), self.rejected, self.min_pixels
        )
