"""
Classes for reading and writing VCF text lines. We only need to update the
QUAL, FILTER and INFO columns of a record and leave everything else exactly
as it was, so a full VCF library is not necessary here.
"""
import re


class Header(object):

    def __init__(self, hInfo = None):
        """
        VCF header information
        """
        self.header = {}
        if hInfo and (type(hInfo) is not dict):
            raise ValueError ('The data type should be "dict" in class '
                              'of "VCFHeader", but found %s' % str(type(hInfo)))
        if hInfo:
            self.header = hInfo

    def add(self, mark, id, num, type, description):
        key = '##%s=<ID=%s' % (mark, id)
        val = ('##%s=<ID=%s,Number=%s,Type=%s,Description="%s">' %
              (mark, id, num if num is not None else '.', type, description))

        self.header[key] = val
        return self

    def record(self, headline):
        if re.search (r'^##fileformat', headline):
            tag = '###'
        elif re.search (r'^#CHROM', headline):
            tag = '#CHROM'
        elif re.search (r'^##\w+=<ID=', headline):
            # Structured lines are unique by their ID
            tag = headline.split(',')[0]
        else:
            tag = '##%d' % len(self.header)
            while tag in self.header:
                tag += '_'

        self.header[tag] = headline

    def lines(self):
        """``##fileformat`` first, ``#CHROM`` last and the others in the
        order they were recorded or added."""
        head = [self.header['###']] if '###' in self.header else []
        tail = [self.header['#CHROM']] if '#CHROM' in self.header else []

        return head + [h for k, h in self.header.items()
                       if k not in ('###', '#CHROM')] + tail


class Context(object):

    def __init__(self):

        """
        VCF context
        """
        self.chrom  = None
        self.pos    = None
        self.Id     = None
        self.ref    = None
        self.alt    = []
        self.qual   = None  # Keep the text so that unscored records are not changed
        self.filter = []
        self.info   = {}    # key => value, None for flags
        self.format = []
        self.sample = []

    @classmethod
    def from_line(cls, line):

        col = line.rstrip('\n').split('\t')
        if len(col) < 8:
            raise ValueError('[ERROR] Not a VCF data line, found only %d '
                             'columns: %s' % (len(col), line.strip()))

        c = cls()
        c.chrom = col[0]
        c.pos = int(col[1])
        c.Id = col[2]
        c.ref = col[3]
        c.alt = [] if col[4] == '.' else col[4].split(',')
        c.qual = col[5]
        c.filter = [] if col[6] == '.' else col[6].split(';')

        if col[7] != '.':
            for info in col[7].split(';'):
                if not info:
                    continue
                k, _, v = info.partition('=')
                c.info[k] = v if _ else None

        if len(col) > 8:
            c.format = col[8].split(':')
            c.sample = col[9:]

        return c

    @property
    def isFiltered(self):
        return any(f not in ('PASS', '.') for f in self.filter)

    def Genotypes(self):
        """GT of all the samples, empty if the record does not have any."""
        if 'GT' not in self.format:
            return []

        i = self.format.index('GT')
        return [s.split(':')[i] if i < len(s.split(':')) else '.' for s in self.sample]

    def to_line(self):

        info = ';'.join(k if v is None else '%s=%s' % (k, v)
                        for k, v in self.info.items())
        col = [self.chrom,
               str(self.pos),
               self.Id if self.Id else '.',
               self.ref,
               ','.join(self.alt) if self.alt else '.',
               self.qual if self.qual else '.',
               ';'.join(self.filter) if self.filter else '.',
               info if info else '.']

        if self.format:
            col.append(':'.join(self.format))
            col.extend(self.sample)

        return '\t'.join(col)
