"""
===========================================
Optimization curve
===========================================

Sweep a threshold over the recalibrated qualities and report, for the
variants retained at each threshold, how many there are, the fraction at
known sites and their Ti/Tv ratio. The table is plotted by an external
Rscript against the target Ti/Tv.
"""
import numpy as np

from ...log import logger

CURVE_HEADER = ['threshold', 'count', 'knownFraction', 'tiTv',
                'numKnown', 'numNovel', 'knownTiTv', 'novelTiTv']


def TiTvRatio(numTi, numTv):
    return float(numTi) / numTv if numTv > 0 else 0.0


class OptimizationCurveGenerator(object):

    def __init__(self, data, qualStep=0.0):

        if len(data) == 0:
            raise ValueError('[ERROR] No scored variants for the optimization curve.')

        if any(d.qual is None for d in data):
            raise ValueError('[ERROR] All the variants must be scored before '
                             'generating the optimization curve.')

        quals = np.array([d.qual for d in data], dtype=float)

        # Descending quality, ties keep the input order
        order = np.argsort(-quals, kind='stable')
        self.quals = quals[order]
        isKnown = np.array([data[i].isKnown for i in order], dtype=int)
        isTi = np.array([data[i].isTransition for i in order], dtype=int)

        self.cumKnown   = np.cumsum(isKnown)
        self.cumKnownTi = np.cumsum(isKnown * isTi)
        self.cumNovelTi = np.cumsum((1 - isKnown) * isTi)
        self.qualStep = qualStep

    def Thresholds(self):

        if self.qualStep > 0:
            maxQual, minQual = self.quals[0], self.quals[-1]
            n = int(np.floor((maxQual - minQual) / self.qualStep))
            thresholds = maxQual - self.qualStep * np.arange(n + 1)
            if thresholds[-1] > minQual:
                thresholds = np.append(thresholds, minQual)

            return thresholds

        return np.unique(self.quals)[::-1]

    def RowAtThreshold(self, threshold):

        # self.quals is descending, so -self.quals is ascending
        count = int(np.searchsorted(-self.quals, -threshold, side='right'))
        if count == 0:
            return [threshold, 0, 0.0, 0.0, 0, 0, 0.0, 0.0]

        i = count - 1
        numKnown = int(self.cumKnown[i])
        numNovel = count - numKnown
        knownTi, novelTi = int(self.cumKnownTi[i]), int(self.cumNovelTi[i])
        knownTv, novelTv = numKnown - knownTi, numNovel - novelTi

        return [float(threshold),
                count,
                float(numKnown) / count,
                TiTvRatio(knownTi + novelTi, knownTv + novelTv),
                numKnown,
                numNovel,
                TiTvRatio(knownTi, knownTv),
                TiTvRatio(novelTi, novelTv)]

    def GenerateCurve(self):
        return [self.RowAtThreshold(t) for t in self.Thresholds()]

    def SelectRow(self, rows, desiredNumVariants):
        """The row whose retained count is closest to ``desiredNumVariants``,
        the one retaining more variants on a tie."""
        return min(rows, key=lambda r: (abs(r[1] - desiredNumVariants), -r[1]))

    def Generate(self, desiredNumVariants=0):

        rows = self.GenerateCurve()
        if desiredNumVariants <= 0:
            return rows

        row = self.SelectRow(rows, desiredNumVariants)
        logger.info('Keeping variants with QUAL >= %.2f results in a filtered set '
                    'with: %d known variants and %d novel variants, known Ti/Tv '
                    '= %.4f and novel Ti/Tv = %.4f' %
                    (row[0], row[4], row[5], row[6], row[7]))

        return [row]


def WriteCurveData(rows, fileName):

    with open(fileName, 'w') as O:
        O.write(','.join(CURVE_HEADER) + '\n')
        for r in rows:
            O.write('%.4f,%d,%.6f,%.6f,%d,%d,%.6f,%.6f\n' % tuple(r))

    return fileName
