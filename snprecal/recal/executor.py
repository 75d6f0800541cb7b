"""
This module contains the executor of the recalibration: check the options,
load the known sites, collect the variant data (on several processes if
the input is bgzipped and tabix indexed) and hand the complete data set to
the VQSR.
"""
import time

from pysam import TabixFile

from . import utils
from . import CallerProcess, process_runner
from .vqsr import vqsr
from .vqsr import variant_data_manager as vdm
from .vqsr.variant_datum import VariantDatum
from ..errors import ConfigurationError
from ..log import logger


def _generate_contigs_for_each_process(contigs, process_num=1):
    """Split ``contigs`` into ``process_num`` contiguous groups, so that
    concatenating the groups in order gives back the original order."""
    process_num = max(1, min(process_num, len(contigs)))
    delta, rest = divmod(len(contigs), process_num)

    contigs_for_each_process, start = [], 0
    for i in range(process_num):
        end = start + delta + (1 if i < rest else 0)
        contigs_for_each_process.append(list(contigs[start:end]))
        start = end

    return contigs_for_each_process


class CollectionProcess(object):
    """Collect the variant data of some contigs into a temporary file."""

    def __init__(self, vcffile, contigs, annotationKeys, knownSites, out_file,
                 ignoreAllFilters=False, ignoreFilters=None):

        self.vcffile = vcffile
        self.contigs = contigs
        self.annotationKeys = annotationKeys
        self.knownSites = knownSites
        self.out_file = out_file
        self.ignoreAllFilters = ignoreAllFilters
        self.ignoreFilters = ignoreFilters

    def run(self):

        tb = TabixFile(self.vcffile)
        with open(self.out_file, 'w') as O:
            for contig in self.contigs:
                data = vdm.LoadDataSet(tb.fetch(contig), self.annotationKeys,
                                       self.knownSites, self.ignoreAllFilters,
                                       self.ignoreFilters)
                for d in data:
                    O.write(d.ToLine() + '\n')

        tb.close()


class VariantRecalibratorRunner(object):

    def __init__(self, vrac):
        """Configuration errors are raised here, before anything is read."""
        self.vrac = vrac.Validate()

    def collect_in_one_process(self, knownSites):

        with utils.Open(self.vrac.vcfInfile, 'r') as I:
            return vdm.LoadDataSet(I, self.vrac.ANNOTATIONS, knownSites,
                                   self.vrac.IGNORE_ALL_INPUT_FILTERS,
                                   self.vrac.IGNORE_INPUT_FILTERS)

    def collect_in_processes(self, knownSites):

        tb = TabixFile(self.vrac.vcfInfile)
        contigs = list(tb.contigs)
        tb.close()

        processes, sub_files = [], []
        for i, sub_contigs in enumerate(_generate_contigs_for_each_process(contigs,
                                                                          self.vrac.nCPU)):
            sub_file = self.vrac.OUTPUT_PREFIX + '.collect_temp_%d' % i
            sub_files.append(sub_file)
            logger.info('Process %d collects %d contig(s) into temporary file %s' %
                        (i + 1, len(sub_contigs), sub_file))

            processes.append(CallerProcess(CollectionProcess,
                                           self.vrac.vcfInfile,
                                           sub_contigs,
                                           self.vrac.ANNOTATIONS,
                                           knownSites,
                                           sub_file,
                                           ignoreAllFilters=self.vrac.IGNORE_ALL_INPUT_FILTERS,
                                           ignoreFilters=self.vrac.IGNORE_INPUT_FILTERS))

        failed = process_runner(processes)
        if failed:
            for f in sub_files:
                utils.safe_remove(f)
            raise RuntimeError('[ERROR] %d collection process(es) failed.' % len(failed))

        # Merge by ordered concatenation
        data = []
        for f in sub_files:
            with open(f) as I:
                data.extend(VariantDatum.FromLine(line) for line in I)
            utils.safe_remove(f)

        return data

    def collect(self, knownSites):

        if self.vrac.nCPU > 1 and utils.is_tabix_indexed(self.vrac.vcfInfile):
            data = self.collect_in_processes(knownSites)
        else:
            if self.vrac.nCPU > 1:
                logger.warning('%s is not bgzipped and tabix indexed, collect '
                               'variants in one process.' % self.vrac.vcfInfile)
            data = self.collect_in_one_process(knownSites)

        return data

    def run(self):

        start_time = time.time()
        knownSites = vdm.LoadKnownSitesFromVCF(self.vrac.knownSites)

        dataSet = self.collect(knownSites)
        if not dataSet:
            raise ConfigurationError('[ERROR] No eligible SNPs with all of the '
                                     'annotations [%s] found in %s' %
                                     (','.join(self.vrac.ANNOTATIONS), self.vrac.vcfInfile))

        logger.info('Collected %d variants in %d seconds.' %
                    (len(dataSet), time.time() - start_time))

        return vqsr.main(self.vrac, dataSet)
