"""Shared fixtures: small synthetic call sets written as VCF files.
"""
import numpy as np
import pytest

from snprecal.recal.vqsr.variant_datum import VariantDatum

VCF_HEADER = [
    '##fileformat=VCFv4.2',
    '##INFO=<ID=QD,Number=1,Type=Float,Description="Variant Confidence/Quality by Depth">',
    '##INFO=<ID=FS,Number=1,Type=Float,Description="Phred-scaled p-value using Fisher\'s exact test">',
    '##INFO=<ID=AC,Number=A,Type=Integer,Description="Allele count in genotypes">',
    '##FILTER=<ID=LowQual,Description="Low quality">',
    '##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">',
    '##contig=<ID=chr1,length=1000000>',
    '##contig=<ID=chr2,length=1000000>',
    '#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tS1\tS2\tS3\tS4',
]

SNP_PAIRS = [('A', 'G'), ('G', 'A'), ('C', 'T'), ('T', 'C'),
             ('A', 'C'), ('A', 'T'), ('G', 'C'), ('G', 'T')]


def make_datum(raw, isKnown=False, isTransition=False, alleleCount=1,
               variantOrder='chr1:1', ref='A', alt='G'):

    d = VariantDatum()
    d.raw_annotations = dict(raw)
    d.annotations = np.array(list(raw.values()), dtype=float)
    d.isKnown = isKnown
    d.atTrainingSite = isKnown
    d.isTransition = isTransition
    d.alleleCount = alleleCount
    d.variantOrder = variantOrder
    d.ref, d.alt = ref, alt
    d.qualRaw = 30.0

    return d


def write_vcf(path, records, header=VCF_HEADER):

    with open(path, 'w') as O:
        O.write('\n'.join(header) + '\n')
        for r in records:
            O.write('\t'.join(r) + '\n')

    return str(path)


def simulate_records(seed=7, n_per_contig=300):
    """Return the VCF records and the known sites."""
    rng = np.random.RandomState(seed)
    records, known = [], []

    for chrom in ('chr1', 'chr2'):
        pos = 100
        for i in range(n_per_contig):
            pos += rng.randint(10, 200)
            ref, alt = SNP_PAIRS[rng.randint(len(SNP_PAIRS))]

            is_true = rng.rand() < 0.7
            if is_true:
                qd, fs = rng.normal(20, 3), abs(rng.normal(2, 1))
                gts = [['0/1', '1/1', '0/0'][rng.randint(3)] for _ in range(4)]
                if rng.rand() < 0.8:
                    known.append((chrom, pos))
            else:
                qd, fs = rng.normal(6, 3), abs(rng.normal(20, 6))
                gts = ['0/1'] + ['0/0'] * 3
                if rng.rand() < 0.1:
                    known.append((chrom, pos))

            records.append([chrom, str(pos), '.', ref, alt, '%.1f' % (qd * 10), '.',
                            'QD=%.3f;FS=%.3f' % (qd, fs), 'GT'] + gts)

        # Records which are never recalibrated
        pos += 50
        records.append([chrom, str(pos), '.', 'AT', 'A', '50', '.',
                        'QD=10.0;FS=1.0', 'GT', '0/1', '0/0', '0/0', '0/0'])
        pos += 50
        records.append([chrom, str(pos), '.', 'A', 'C,G', '50', '.',
                        'QD=10.0;FS=1.0', 'GT', '0/1', '0/2', '0/0', '0/0'])
        pos += 50
        records.append([chrom, str(pos), '.', 'A', 'G', '50', 'LowQual',
                        'QD=10.0;FS=1.0', 'GT', '0/1', '0/0', '0/0', '0/0'])
        pos += 50
        records.append([chrom, str(pos), '.', 'C', 'T', '50', '.',
                        'FS=1.0', 'GT', '0/1', '0/0', '0/0', '0/0'])
        pos += 50
        records.append([chrom, str(pos), '.', 'C', 'A', '50', 'PASS',
                        'QD=10.0;FS=1.0', 'GT', '0/0', '0/0', '0/0', '0/0'])

    return records, known


@pytest.fixture
def callset(tmp_path):
    """A plain text input VCF, a known sites VCF and the number of records
    that will be recalibrated."""
    records, known = simulate_records()

    # The all 0/0 genotype records have no ALT allele and are left out
    n_scored = sum(1 for r in records
                   if len(r[3]) == 1 and r[4] in 'ACGT' and len(r[4]) == 1 and
                   r[6] in ('.', 'PASS') and r[7].startswith('QD') and
                   any('1' in g for g in r[9:]))

    vcf = write_vcf(tmp_path / 'calls.vcf', records)
    known_vcf = write_vcf(tmp_path / 'known.vcf',
                          [[c, str(p), 'rs%d' % i, 'A', 'G', '.', '.', '.']
                           for i, (c, p) in enumerate(known)],
                          header=VCF_HEADER[:1] + ['#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO'])

    return vcf, known_vcf, n_scored
