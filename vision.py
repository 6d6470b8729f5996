"""
One pass connected components (Lutz, 1980)

IMPORTANT

Assuming top left is (0,0), scanning left to right, top to bottom.  Every pixel
is visited exactly once and nothing but the current row is ever looked at.  The
only memory that outlives a row is one marker per column, the object stack and
the row store, so working memory is O(width) no matter how tall the image is.

Objects are 8-connected:

     ###         #
        ###       #      <- both of these are one object
                   #

Markers, written under the row that is being scanned and read back on the next:

    S   first px of an object's first segment on the row
    s   first px of a further segment of an object already seen on the row
    f   just past the end of a segment, the object may carry on
    F   just past the end of the object's last segment, the object is done
        unless the next row picks it up

     x x x x x x x x . .        row y-1     one run, S at 0, F at 8
     x x x . . x x . . .        row y       S at 0, f at 3, s at 5, F at 7
     S     f   s   F

Stacks:

    OBSTACK  open objects, co is the top.  start / end are the first and last
             columns of the object on this row, info is its pixel buffer.
             Slot 0 is the background and never collects pixels.
    PSSTACK  the PS of each parent while a child object is open.  pstop is the top.
    STORE    per column, the pixels of an object that closed on the previous row
             at that column but may yet continue.

Width is the last column, the sentinel; treated as dark, it flushes whatever is
still open at the end of the row.
"""
import logging

import numpy as np

from objectStore import ObjectStore
from pixelObject import Pixel
from pixelSource import PixelSource, Threshold

log = logging.getLogger( __name__ )


DEFAULT_THRESHOLD  = 0.0
DEFAULT_MIN_PIXELS = 1

# Markers
NO_MARK        = ""
MARK_START     = "S"
MARK_SECONDARY = "s"
MARK_FINISH    = "f"
MARK_FINISHED  = "F"

UNKNOWN = -1 # start / end not seen on this row


class ScanStateError( RuntimeError ):
    """ The stacks are corrupt.  This is a bug, not bad data. """
    pass


class SegmentTracker( object ):

    # Pixel status
    COMPLETE   = 0
    INCOMPLETE = 1
    OBJECT     = 2
    NONOBJECT  = 3

    def __init__( self, source=None, threshold=DEFAULT_THRESHOLD, min_pixels=DEFAULT_MIN_PIXELS, predicate=None ):
        self.source    = source
        self.predicate = Threshold( threshold ) if predicate is None else predicate
        self.objects   = ObjectStore( min_pixels )
        self._reset( 0 )


    def setSource( self, source ):
        self.source = source


    def setThreshold( self, threshold, inclusive=False ):
        self.predicate = Threshold( threshold, inclusive )


    def setPredicate( self, predicate ):
        self.predicate = predicate


    def setMinPixels( self, min_pixels ):
        self.objects.min_pixels = int( min_pixels )


    # Hooks -----------------------------------------------------------------
    def rowValues( self, y ):
        return self.source.rowValues( y )


    def assessPixel( self, value ):
        return self.predicate( value )


    # Results ---------------------------------------------------------------
    def getObject( self, idx ):
        return self.objects.getObject( idx )


    def getObjects( self ):
        return self.objects.getObjects()


    def numObjects( self ):
        return self.objects.numObjects()


    # Scan ------------------------------------------------------------------
    def _reset( self, width ):
        self.width   = width
        self.marker  = [ NO_MARK ] * (width + 1)
        # OBSTACK
        self.start   = [ UNKNOWN ] * (width + 1)
        self.end     = [ UNKNOWN ] * (width + 1)
        self.info    = [ [] for _ in range( width + 1 ) ]
        self.co      = 0
        # PSSTACK
        self.psstack = [ self.COMPLETE ] * max( width, 1 )
        self.pstop   = 0
        # STORE
        self.store   = [ [] for _ in range( width ) ]
        # row states
        self.ps      = self.COMPLETE
        self.cs      = self.NONOBJECT


    def run( self ):
        if( self.source is None ):
            raise ValueError( "No image to scan" )

        width, height = self.source.size()
        self._reset( width )
        self.objects.clear()

        for y in range( height ):
            self.ps = self.COMPLETE
            self.cs = self.NONOBJECT

            for x, value in enumerate( self.rowValues( y ) ):
                # take the marker from the row above, this row writes its own
                prev_marker = self.marker[ x ]
                self.marker[ x ] = NO_MARK

                if( self.assessPixel( value ) ):
                    if( self.cs == self.NONOBJECT ):
                        self._startSegment( x )
                    if( prev_marker ):
                        self._processMarker( prev_marker, x )
                    self.info[ self.co ].append( Pixel( x, y, value ) )

                else:
                    self._darkPixel( prev_marker, x )

            # Sentinel
            prev_marker = self.marker[ width ]
            self.marker[ width ] = NO_MARK
            self._darkPixel( prev_marker, width )

        self._storeClearance()

        log.debug( "Scanned {}x{} image: {} objects, {} rejected".format(
            width, height, len( self.objects ), self.objects.rejected ) )

        return self.objects.getObjects()


    def _darkPixel( self, prev_marker, x ):
        if( prev_marker ):
            self._processMarker( prev_marker, x )
        if( self.cs == self.OBJECT ):
            self._endSegment( x )


    def _startSegment( self, x ):
        self.cs = self.OBJECT

        if( self.ps == self.OBJECT ):
            # joined to an object above
            if( self.start[ self.co ] == UNKNOWN ):
                self.marker[ x ] = MARK_START
                self.start[ self.co ] = x
            else:
                self.marker[ x ] = MARK_SECONDARY

        else:
            # nothing above, a new object
            self._pushObject( x )
            self.marker[ x ] = MARK_START


    def _endSegment( self, x ):
        self.cs = self.NONOBJECT

        if( self.ps != self.COMPLETE ):
            # more of this object may turn up
            self.marker[ x ] = MARK_FINISH
            self.end[ self.co ] = x
        else:
            self._popObject()
            self.marker[ x ] = MARK_FINISHED


    def _processMarker( self, prev_marker, x ):
        co = self.co

        if( prev_marker == MARK_START ):
            self._pushStatus()

            if( self.cs == self.NONOBJECT ):
                # first touch of this object on this row, reopen it
                self._pushStatus( self.COMPLETE )
                co = self._raiseCursor()
                self.info[ co ] = self.store[ x ]
                self.store[ x ] = []
                self.start[ co ] = UNKNOWN

            else:
                # the current segment joins the object above
                self.info[ co ].extend( self.store[ x ] )
                self.store[ x ] = []

            self.ps = self.OBJECT

        elif( prev_marker == MARK_SECONDARY ):
            if( self.cs == self.OBJECT and self.ps == self.COMPLETE ):
                # The segment was opened as a new object but it touches a
                # further segment of the parent, fold it into the parent
                self._dropStatus()
                k = self.start[ co ]
                parent = self._lowerCursor()
                self.info[ parent ].extend( self.info[ co ] )
                self.info[ co ] = []

                if( self.start[ parent ] == UNKNOWN ):
                    self.start[ parent ] = k
                else:
                    self.marker[ k ] = MARK_SECONDARY

            self.ps = self.OBJECT

        elif( prev_marker == MARK_FINISH ):
            self.ps = self.INCOMPLETE

        elif( prev_marker == MARK_FINISHED ):
            self._popStatus()

            if( self.cs == self.NONOBJECT and self.ps == self.COMPLETE ):
                # nothing more of this object on this row
                if( self.start[ co ] == UNKNOWN ):
                    # and nothing on this row at all, so it's done
                    self._writeObject( self.info[ co ] )

                else:
                    # seen on this row, may carry on to the next
                    end = self.end[ co ]
                    if( end == UNKNOWN ):
                        raise ScanStateError( "Object {} has no end at column {}".format( co, x ) )
                    self.marker[ end ] = MARK_FINISHED
                    self.store[ self.start[ co ] ].extend( self.info[ co ] )

                self.info[ co ] = []
                self._lowerCursor()
                self._popStatus()

        else:
            raise ScanStateError( "Unknown marker '{}' at column {}".format( prev_marker, x ) )


    # Stack management ------------------------------------------------------
    def _pushStatus( self, status=None ):
        if( self.pstop == len( self.psstack ) ):
            self.psstack.append( self.COMPLETE )
        self.psstack[ self.pstop ] = self.ps if status is None else status
        self.pstop += 1
        self.ps = self.COMPLETE


    def _dropStatus( self ):
        if( self.pstop < 1 ):
            raise ScanStateError( "PSSTACK underflow" )
        self.pstop -= 1


    def _popStatus( self ):
        self._dropStatus()
        self.ps = self.psstack[ self.pstop ]


    def _raiseCursor( self ):
        self.co += 1
        if( self.co == len( self.start ) ):
            self.start.append( UNKNOWN )
            self.end.append( UNKNOWN )
            self.info.append( [] )
        return self.co


    def _lowerCursor( self ):
        if( self.co < 1 ):
            raise ScanStateError( "OBSTACK underflow" )
        self.co -= 1
        return self.co


    def _pushObject( self, x ):
        self._pushStatus()
        co = self._raiseCursor()
        self.start[ co ] = x
        self.info[ co ] = []


    def _popObject( self ):
        co = self.co
        start = self.start[ co ]
        if( co < 1 or start == UNKNOWN ):
            raise ScanStateError( "Closing object {} with no start".format( co ) )

        self._popStatus()
        self.store[ start ].extend( self.info[ co ] )
        self.info[ co ] = []
        self.start[ co ] = UNKNOWN
        self.end[ co ] = UNKNOWN
        self._lowerCursor()


    def _storeClearance( self ):
        # Whatever is still in the store touched the bottom row
        for x in range( len( self.store ) ):
            self._writeObject( self.store[ x ] )
            self.store[ x ] = []


    def _writeObject( self, pixels ):
        self.objects.write( pixels )


    def __repr__( self ):
        return "SegmentTracker on {} with {}, {} objects".format(
            self.source, self.predicate, len( self.objects ) )


def connected( data, threshold=DEFAULT_THRESHOLD, min_pixels=DEFAULT_MIN_PIXELS, data_wh=None ):
    """
        Scan an image (2D array, or flat buffer of extents data_wh) and return the
        list of objects over threshold with at least min_pixels pixels.
    """
    tracker = SegmentTracker( PixelSource( data, data_wh ), threshold, min_pixels )
    return tracker.run()


def objs2detsBB( obj_list ):
    # Nieve 'center of a BB' computation
    ret = []
    for obj in obj_list:
        x = (obj.xmax - obj.xmin) / 2.
        y = (obj.ymax - obj.ymin) / 2.
        r = (x + y) / 2.
        if( x < y ):
            score = x / y
        elif( x > 0. ):
            score = y / x
        else:
            score = 1.0
        x += obj.xmin + 0.5
        y += obj.ymin + 0.5
        ret.append( (x, y, r, score) )
    return ret


def objs2detsMoments( obj_list, weight_bins=True ):
    """
        Image Moments
        see: https://en.wikipedia.org/wiki/Image_moment

        Centroid from the 1st order moments, 'radius' is the mean of the two
        2nd order central moments, score the ratio of short / long moment, so
        1.0 for a round blob.
    """
    ret = []
    for obj in obj_list:
        xs, ys, values, scales = obj.asArrays()
        weights = scales * values if weight_bins else scales
        if( weights.sum() <= 0. ):
            weights = scales

        M_00 = weights.sum() + 1e-6 # div 0 guard
        M_00r = 1. / M_00
        x = (weights * xs).sum() * M_00r
        y = (weights * ys).sum() * M_00r

        # add a little to guard div by zero
        u_20_ = ((weights * xs * xs).sum() * M_00r) - (x * x) + 1e-8
        u_02_ = ((weights * ys * ys).sum() * M_00r) - (y * y) + 1e-8
        u_20_ = max( u_20_, 1e-8 )
        u_02_ = max( u_02_, 1e-8 )
        r = (u_02_ + u_20_) / 2.

        score = (u_20_ / u_02_) if( u_20_ < u_02_ ) else (u_02_ / u_20_)

        # pixels are not 'little squares' !
        x += 0.5
        y += 0.5

        ret.append( (float( x ), float( y ), float( r ), float( score )) )
    return ret


objs2dets = objs2detsMoments


class DetMan( object ):
    """ One scan context.  Not reentrant, give each thread its own DetMan. """

    def __init__( self, data_wh, threshold=DEFAULT_THRESHOLD, min_pixels=DEFAULT_MIN_PIXELS, id=0 ):
        self.data_wh    = data_wh
        self.threshold  = threshold
        self.id         = id
        self.tracker    = SegmentTracker( threshold=threshold, min_pixels=min_pixels )


    def push( self, data, que=None ):
        self.tracker.setSource( PixelSource( np.asarray( data ), self.data_wh ) )
        objects = self.tracker.run()
        ret = ( self.id, objs2dets( objects ) )
        if( que is None ):
            return ret
        que.put( ret )
