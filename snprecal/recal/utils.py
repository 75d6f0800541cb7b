import os
import gzip

from pysam import tabix_index


def safe_remove(fname):
    """Remove a file if it exist"""
    if not fname:
        return False

    if os.path.exists(fname):
        os.remove(fname)

    return True


def is_tabix_indexed(fname):
    """A bgzipped file with a .tbi or .csi index beside it."""
    return fname.endswith('.gz') and (os.path.exists(fname + '.tbi') or
                                      os.path.exists(fname + '.csi'))


def expandedOpen(path, mode):
    try:
        return open(path, mode)
    except IOError:
        return open(os.path.expanduser(path), mode)


def Open(file_name, mode, compress_level=9):
    """
    Function that allows transparent usage of gzip/bgzip and ordinary
    files. Always in text mode.
    """
    if 'b' not in mode and 't' not in mode:
        mode += 't'

    if file_name.endswith(".gz") or file_name.endswith(".GZ"):
        file_dir = os.path.dirname(file_name)
        if file_dir and not os.path.exists(file_dir):
            file_name = os.path.expanduser(file_name)

        return gzip.open(file_name, mode, compresslevel=compress_level)
    else:
        return expandedOpen(file_name, mode.replace('t', ''))


def output_vcf_name(out_file_name):
    """The plain text VCF we write to; bgzipped afterwards if ``out_file_name`` is .gz"""
    return out_file_name[:-3] if out_file_name.endswith('.gz') else out_file_name


def compress_and_index(plain_vcf_file, out_file_name):
    """bgzip and tabix a VCF file if the final output should be compressed."""
    if not out_file_name.endswith('.gz'):
        return out_file_name

    # tabix_index compresses ``plain_vcf_file`` into ``plain_vcf_file.gz`` first
    return tabix_index(plain_vcf_file, force=True, preset='vcf', keep_original=False)
